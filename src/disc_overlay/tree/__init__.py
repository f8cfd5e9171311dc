"""Tree lookups and patch-list application."""

from disc_overlay.tree.exceptions import NodeNotFoundError, TreeError, TypeMismatchError
from disc_overlay.tree.resolver import (
    find_by_filename,
    find_or_create,
    iter_files,
    names_equal,
    resolve_file_node,
)
from disc_overlay.tree.applier import (
    DEFAULT_MAIN_EXECUTABLE,
    apply_file_patch_to_tree,
    apply_folder_patch_to_tree,
    apply_patches_to_files,
    combine_paths,
    extract_savegame_redirect,
)
from disc_overlay.tree.host_tree import (
    build_tree_from_directory,
    export_file,
    export_tree,
    file_node_from_host,
    freeze_tree,
)

__all__ = [
    "DEFAULT_MAIN_EXECUTABLE",
    "NodeNotFoundError",
    "TreeError",
    "TypeMismatchError",
    "apply_file_patch_to_tree",
    "apply_folder_patch_to_tree",
    "apply_patches_to_files",
    "build_tree_from_directory",
    "combine_paths",
    "export_file",
    "export_tree",
    "extract_savegame_redirect",
    "file_node_from_host",
    "find_by_filename",
    "find_or_create",
    "freeze_tree",
    "iter_files",
    "names_equal",
    "resolve_file_node",
]
