"""CLI entry point for the disc overlay."""
import argparse
import json
import logging
import sys
import traceback
from pathlib import Path

from pydantic import ValidationError

from disc_overlay.config import OverlaySettings, load_settings
from disc_overlay.content.exceptions import ContentError
from disc_overlay.loaders.exceptions import PathEscapeError
from disc_overlay.models import FileNode, FilePatchResult, FolderNode, Patch

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_PATH_ESCAPE = 2
EXIT_CONTENT_ERROR = 3
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="disc-overlay",
        description="Compose patched disc file trees without touching the originals",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser(
        "resolve", help="Show where an external patch path resolves to"
    )
    resolve.add_argument("path", type=str, help="External path as written in a patch")
    resolve.add_argument("--sd-root", type=str, required=True, help="SD card root folder")
    resolve.add_argument(
        "--patch-root",
        type=str,
        default="",
        help="Root for relative paths (default: the SD root)",
    )

    apply = subparsers.add_parser("apply", help="Apply a patch list to a base folder")
    apply.add_argument("base_dir", type=str, help="Folder holding the unpatched files")
    apply.add_argument("patches", type=str, help="JSON patch list")
    apply.add_argument(
        "--sd-root",
        type=str,
        default="",
        help="SD card root folder (default: the patch list's folder)",
    )
    apply.add_argument(
        "--output",
        type=str,
        default="",
        help="Write the composed files below this folder instead of listing them",
    )
    apply.add_argument("--output-json", action="store_true", help="Output results as JSON")
    return parser


def configure_logging(settings: OverlaySettings, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level, logging.WARNING)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def load_patch_list(path: Path, sd_root: str) -> list[Patch]:
    """Read a JSON patch list, giving each patch a host loader.

    Each entry holds a patch's fields plus an optional ``root`` that sets
    where its relative external paths start (see ``resolve_patch_root``).

    Raises:
        ValueError: If the document is not a list of patch objects.
        ValidationError: If a patch object has invalid fields.
    """
    from disc_overlay.loaders.host_fs import HostFileDataLoader

    document = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(document, list):
        raise ValueError(f"{path} must contain a JSON list of patches")

    patches = []
    for entry in document:
        if not isinstance(entry, dict):
            raise ValueError(f"{path} contains a non-object patch entry")
        fields = dict(entry)
        root = fields.pop("root", "")
        loader = HostFileDataLoader.for_document(sd_root, str(path), root)
        patches.append(Patch.model_validate({**fields, "loader": loader}))
    return patches


def split_main_executable(root: FolderNode, name: str) -> FileNode | None:
    """Detach a top-level file named ``name`` from ``root`` and return it."""
    from disc_overlay.tree.resolver import names_equal

    for index, child in enumerate(root.children):
        if child.is_file and names_equal(child.name, name):
            return root.children.pop(index)
    return None


def format_result_json(results: list[FilePatchResult], listing: list[dict]) -> str:
    payload = {
        "results": [r.model_dump(mode="json") for r in results],
        "files": listing,
    }
    return json.dumps(payload, indent=2)


def print_result_human(results: list[FilePatchResult], listing: list[dict]) -> None:
    """Print results in human-readable format."""
    print(f"\n{'='*60}")
    print("Disc Overlay Results")
    print(f"{'='*60}")

    outcome_counts: dict[str, int] = {}
    for result in results:
        outcome_counts[result.outcome.value] = outcome_counts.get(result.outcome.value, 0) + 1
    print(f"\nFile patches ({len(results)} total):")
    for outcome, count in sorted(outcome_counts.items()):
        print(f"  {outcome}: {count}")

    print(f"\nFiles ({len(listing)}):")
    for entry in listing:
        print(f"  {entry['path']}  {entry['size']} bytes  {entry['segments']} segment(s)")

    print(f"\n{'='*60}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def run_resolve(args: argparse.Namespace) -> int:
    from disc_overlay.loaders.sandbox import canonicalize

    try:
        resolved = canonicalize(args.path, args.sd_root, args.patch_root or args.sd_root)
    except PathEscapeError as exc:
        return _handle_error("Rejected path", exc, args.verbose, EXIT_PATH_ESCAPE)
    print(resolved)
    return EXIT_SUCCESS


def run_apply(args: argparse.Namespace, settings: OverlaySettings) -> int:
    # Lazy imports keep --help fast
    from disc_overlay.tree.applier import apply_patches_to_files
    from disc_overlay.tree.host_tree import build_tree_from_directory, export_tree
    from disc_overlay.tree.resolver import iter_files

    base_dir = Path(args.base_dir).resolve()
    if not base_dir.is_dir():
        print(f"Error: '{args.base_dir}' is not a valid directory.", file=sys.stderr)
        return EXIT_INVALID_INPUT
    patch_path = Path(args.patches).resolve()
    if not patch_path.is_file():
        print(f"Error: '{args.patches}' is not a file.", file=sys.stderr)
        return EXIT_INVALID_INPUT

    sd_root = str(Path(args.sd_root).resolve()) if args.sd_root else str(patch_path.parent)
    try:
        patches = load_patch_list(patch_path, sd_root)
    except (ValueError, ValidationError) as exc:
        return _handle_error("Invalid patch list", exc, args.verbose, EXIT_INVALID_INPUT)

    root = build_tree_from_directory(base_dir)
    main_node = split_main_executable(root, settings.main_executable)
    results = apply_patches_to_files(patches, root, main_node, settings.main_executable)
    if main_node is not None:
        root.children.insert(0, main_node)

    listing = [
        {"path": path, "size": node.size, "segments": len(node.segments)}
        for path, node in iter_files(root.children)
    ]

    if args.output:
        try:
            count = export_tree(root, args.output)
        except ContentError as exc:
            return _handle_error("Failed to compose files", exc, args.verbose, EXIT_CONTENT_ERROR)
        if args.verbose:
            print(f"Wrote {count} files to {args.output}")

    if args.output_json:
        print(format_result_json(results, listing))
    else:
        print_result_human(results, listing)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValueError as exc:
        return _handle_error("Invalid settings", exc, args.verbose, EXIT_INVALID_INPUT)
    configure_logging(settings, args.verbose)

    try:
        if args.command == "resolve":
            return run_resolve(args)
        return run_apply(args, settings)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)


if __name__ == "__main__":
    sys.exit(main())
