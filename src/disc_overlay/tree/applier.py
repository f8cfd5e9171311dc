"""Apply the file and folder directives of a patch list to a tree."""

import logging
from typing import Optional

from disc_overlay.content.splice import apply_file_patch
from disc_overlay.models import (
    ExternalDataLoader,
    FileNode,
    FilePatch,
    FilePatchResult,
    FolderNode,
    FolderPatch,
    Patch,
    PatchOutcome,
    SavegameRedirect,
)
from disc_overlay.tree.exceptions import NodeNotFoundError, TypeMismatchError
from disc_overlay.tree.resolver import find_by_filename, names_equal, resolve_file_node

logger = logging.getLogger(__name__)

DEFAULT_MAIN_EXECUTABLE = "main.dol"


def combine_paths(a: str, b: str) -> str:
    """Join two paths with exactly one ``/`` at the seam."""
    if not a:
        return b
    if not b:
        return a
    if a.endswith("/"):
        a = a[:-1]
    if b.startswith("/"):
        b = b[1:]
    return f"{a}/{b}"


def _loader_for(patch: Patch) -> ExternalDataLoader:
    if patch.loader is None:
        raise ValueError(f"Patch {patch.name!r} has no external data loader")
    return patch.loader


def _target_node(
    file_patch: FilePatch,
    root: FolderNode,
    main_node: Optional[FileNode],
    main_executable: str,
) -> tuple[Optional[FileNode], PatchOutcome]:
    disc = file_patch.disc
    if disc.startswith("/"):
        try:
            return resolve_file_node(disc[1:], root.children, file_patch.create), PatchOutcome.APPLIED
        except TypeMismatchError as e:
            logger.debug("Skipping patch for %s: %s", disc, e)
            return None, PatchOutcome.TYPE_MISMATCH
        except NodeNotFoundError as e:
            logger.debug("Skipping patch for %s: %s", disc, e)
            return None, PatchOutcome.SKIPPED

    if names_equal(disc, main_executable):
        if main_node is None:
            logger.debug("Skipping patch for %s: no executable node", disc)
            return None, PatchOutcome.SKIPPED
        return main_node, PatchOutcome.APPLIED

    node = find_by_filename(disc, root.children)
    if node is None:
        logger.debug("Skipping patch for %s: no file with that name", disc)
        return None, PatchOutcome.SKIPPED
    return node, PatchOutcome.APPLIED


def apply_file_patch_to_tree(
    loader: ExternalDataLoader,
    file_patch: FilePatch,
    root: FolderNode,
    main_node: Optional[FileNode] = None,
    main_executable: str = DEFAULT_MAIN_EXECUTABLE,
) -> FilePatchResult:
    """Apply one file directive to the tree.

    A disc path starting with ``/`` names an exact path (created on demand
    when the directive allows it); the executable's name targets
    ``main_node``; anything else patches the first file with that name.
    """
    if min(file_patch.offset, file_patch.fileoffset, file_patch.length) < 0:
        logger.warning("Skipping patch for %s: negative offset or length", file_patch.disc)
        return FilePatchResult(
            disc=file_patch.disc, external=file_patch.external, outcome=PatchOutcome.SKIPPED
        )

    node, outcome = _target_node(file_patch, root, main_node, main_executable)
    if node is not None and not apply_file_patch(node, loader, file_patch):
        outcome = PatchOutcome.RESOURCE_UNAVAILABLE
    return FilePatchResult(disc=file_patch.disc, external=file_patch.external, outcome=outcome)


def apply_folder_patch_to_tree(
    loader: ExternalDataLoader,
    folder_patch: FolderPatch,
    root: FolderNode,
    main_node: Optional[FileNode] = None,
    main_executable: str = DEFAULT_MAIN_EXECUTABLE,
    disc_path: Optional[str] = None,
    external_path: Optional[str] = None,
) -> list[FilePatchResult]:
    """Apply every file in an external folder as its own file directive."""
    if disc_path is None:
        disc_path = folder_patch.disc
    if external_path is None:
        external_path = folder_patch.external

    results: list[FilePatchResult] = []
    for child in loader.get_folder_entries(external_path):
        child_disc_path = combine_paths(disc_path, child.name)
        child_external_path = combine_paths(external_path, child.name)

        if child.is_directory:
            if folder_patch.recursive:
                results.extend(apply_folder_patch_to_tree(
                    loader,
                    folder_patch,
                    root,
                    main_node,
                    main_executable,
                    child_disc_path,
                    child_external_path,
                ))
            continue

        file_patch = FilePatch(
            disc=child_disc_path,
            external=child_external_path,
            resize=folder_patch.resize,
            create=folder_patch.create,
            length=folder_patch.length,
        )
        results.append(apply_file_patch_to_tree(
            loader, file_patch, root, main_node, main_executable
        ))
    return results


def apply_patches_to_files(
    patches: list[Patch],
    root: FolderNode,
    main_node: Optional[FileNode] = None,
    main_executable: str = DEFAULT_MAIN_EXECUTABLE,
) -> list[FilePatchResult]:
    """Apply the file directives, then the folder directives, of every patch.

    Args:
        patches: Patches in application order.
        root: Root folder of the tree to edit.
        main_node: Node standing for the main executable, if any.
        main_executable: Disc name that targets ``main_node``.

    Returns:
        One result per file directive, including those synthesized from folders.
    """
    results: list[FilePatchResult] = []
    for patch in patches:
        loader = _loader_for(patch)
        for file_patch in patch.file_patches:
            results.append(apply_file_patch_to_tree(
                loader, file_patch, root, main_node, main_executable
            ))
        for folder_patch in patch.folder_patches:
            results.extend(apply_folder_patch_to_tree(
                loader, folder_patch, root, main_node, main_executable
            ))

    applied = sum(1 for r in results if r.outcome == PatchOutcome.APPLIED)
    logger.info("Applied %d of %d file patches", applied, len(results))
    return results


def extract_savegame_redirect(patches: list[Patch]) -> Optional[SavegameRedirect]:
    """Return the first savegame redirect of the first patch that has one."""
    for patch in patches:
        if not patch.savegame_patches:
            continue
        save_patch = patch.savegame_patches[0]
        resolved = _loader_for(patch).resolve_savegame_path(save_patch.external)
        if resolved is None:
            return None
        return SavegameRedirect(path=resolved, clone=save_patch.clone)
    return None
