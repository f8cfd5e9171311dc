"""Unit tests for the CLI module (disc_overlay.cli.main)."""

from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from disc_overlay.cli.main import (
    EXIT_CONTENT_ERROR,
    EXIT_INVALID_INPUT,
    EXIT_KEYBOARD_INTERRUPT,
    EXIT_PATH_ESCAPE,
    EXIT_SUCCESS,
    EXIT_UNEXPECTED,
    build_parser,
    format_result_json,
    load_patch_list,
    main,
    split_main_executable,
)
from disc_overlay.content.exceptions import OutOfRangeError
from disc_overlay.models import FilePatchResult, FolderNode, PatchOutcome


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _write_patch_list(path, patches):
    path.write_text(json.dumps(patches), encoding="utf-8")
    return path


@pytest.fixture()
def workspace(tmp_path):
    """A base folder plus an SD folder holding a patch list and its files."""
    base = tmp_path / "base"
    (base / "Stage").mkdir(parents=True)
    (base / "main.dol").write_bytes(b"\x00" * 8)
    (base / "Stage" / "level.arc").write_bytes(b"level-data")

    sd = tmp_path / "sd"
    (sd / "riiv").mkdir(parents=True)
    (sd / "riiv" / "code.bin").write_bytes(bytes.fromhex("deadbeef"))
    (sd / "riiv" / "level.bin").write_bytes(b"NEW")
    patches = _write_patch_list(sd / "patches.json", [{
        "name": "mod",
        "root": "riiv",
        "file_patches": [
            {"disc": "main.dol", "external": "code.bin", "offset": 4, "resize": False},
            {"disc": "/Stage/level.arc", "external": "level.bin"},
            {"disc": "/Stage/missing.arc", "external": "level.bin"},
        ],
    }])
    return {"base": base, "sd": sd, "patches": patches}


# ---------------------------------------------------------------------------
# TestBuildParser
# ---------------------------------------------------------------------------
class TestBuildParser:
    def test_resolve_args(self):
        args = build_parser().parse_args(["resolve", "a/b", "--sd-root", "/sd"])
        assert args.command == "resolve"
        assert (args.path, args.sd_root, args.patch_root) == ("a/b", "/sd", "")

    def test_apply_defaults(self):
        args = build_parser().parse_args(["apply", "/base", "/p.json"])
        assert args.command == "apply"
        assert args.output == ""
        assert args.sd_root == ""
        assert args.output_json is False
        assert args.verbose is False

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_resolve_requires_sd_root(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["resolve", "a/b"])


# ---------------------------------------------------------------------------
# Helpers under test
# ---------------------------------------------------------------------------
class TestSplitMainExecutable:
    def test_detaches_top_level_file(self, make_buffer_file):
        root = FolderNode(name="", children=[
            make_buffer_file("a.bin", b"a"),
            make_buffer_file("Main.dol", b"m"),
        ])
        node = split_main_executable(root, "main.dol")
        assert node.name == "Main.dol"
        assert [c.name for c in root.children] == ["a.bin"]

    def test_ignores_nested_files(self, make_buffer_file):
        root = FolderNode(name="", children=[
            FolderNode(name="sys", children=[make_buffer_file("main.dol", b"m")]),
        ])
        assert split_main_executable(root, "main.dol") is None


class TestFormatResultJson:
    def test_structure(self):
        results = [FilePatchResult(disc="/a", external="b", outcome=PatchOutcome.SKIPPED)]
        payload = json.loads(format_result_json(results, [{"path": "a", "size": 1, "segments": 1}]))
        assert payload["results"][0]["outcome"] == "skipped"
        assert payload["files"][0]["path"] == "a"


class TestLoadPatchList:
    def test_each_patch_gets_its_own_root(self, tmp_path):
        path = _write_patch_list(tmp_path / "list.json", [
            {"name": "one", "root": "first"},
            {"name": "two"},
        ])
        patches = load_patch_list(path, str(tmp_path))
        assert patches[0].loader.patch_root == f"{tmp_path}/first"
        assert patches[1].loader.patch_root == str(tmp_path)

    def test_rejects_non_list(self, tmp_path):
        path = _write_patch_list(tmp_path / "list.json", {"name": "one"})
        with pytest.raises(ValueError):
            load_patch_list(path, str(tmp_path))


# ---------------------------------------------------------------------------
# TestMain: resolve
# ---------------------------------------------------------------------------
class TestMainResolve:
    def test_prints_canonical_path(self, capsys):
        code = main(["resolve", "riiv/./x/../file.bin", "--sd-root", "/sd"])
        assert code == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "/sd/riiv/file.bin"

    def test_relative_to_patch_root(self, capsys):
        code = main(["resolve", "file.bin", "--sd-root", "/sd", "--patch-root", "/sd/mod"])
        assert code == EXIT_SUCCESS
        assert capsys.readouterr().out.strip() == "/sd/mod/file.bin"

    def test_escape(self, capsys):
        code = main(["resolve", "../secret", "--sd-root", "/sd"])
        assert code == EXIT_PATH_ESCAPE
        assert "Rejected path" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# TestMain: apply
# ---------------------------------------------------------------------------
class TestMainApply:
    def test_json_output(self, workspace, capsys):
        code = main(["apply", str(workspace["base"]), str(workspace["patches"]), "--output-json"])
        assert code == EXIT_SUCCESS
        payload = json.loads(capsys.readouterr().out)
        assert [r["outcome"] for r in payload["results"]] == ["applied", "applied", "skipped"]
        assert payload["files"] == [
            {"path": "main.dol", "size": 8, "segments": 2},
            {"path": "Stage/level.arc", "size": 3, "segments": 1},
        ]

    def test_writes_composed_files(self, workspace, tmp_path, capsys):
        out = tmp_path / "out"
        code = main([
            "apply", str(workspace["base"]), str(workspace["patches"]), "--output", str(out),
        ])
        assert code == EXIT_SUCCESS
        assert (out / "main.dol").read_bytes() == b"\x00" * 4 + bytes.fromhex("deadbeef")
        assert (out / "Stage" / "level.arc").read_bytes() == b"NEW"
        assert (workspace["base"] / "Stage" / "level.arc").read_bytes() == b"level-data"
        assert "Disc Overlay Results" in capsys.readouterr().out

    def test_explicit_sd_root(self, workspace, tmp_path, capsys):
        other = tmp_path / "other"
        other.mkdir()
        (other / "global.bin").write_bytes(b"OTHER")
        patches = _write_patch_list(workspace["sd"] / "global.json", [{
            "file_patches": [{"disc": "/Stage/level.arc", "external": "/global.bin"}],
        }])

        code = main(["apply", str(workspace["base"]), str(patches), "--output-json"])
        payload = json.loads(capsys.readouterr().out)
        assert payload["results"][0]["outcome"] == "resource_unavailable"

        code = main([
            "apply", str(workspace["base"]), str(patches),
            "--sd-root", str(other), "--output-json",
        ])
        assert code == EXIT_SUCCESS
        payload = json.loads(capsys.readouterr().out)
        assert payload["results"][0]["outcome"] == "applied"
        assert payload["files"][1]["size"] == 5

    def test_missing_base_dir(self, workspace, tmp_path):
        code = main(["apply", str(tmp_path / "nope"), str(workspace["patches"])])
        assert code == EXIT_INVALID_INPUT

    def test_missing_patch_list(self, workspace, tmp_path):
        code = main(["apply", str(workspace["base"]), str(tmp_path / "nope.json")])
        assert code == EXIT_INVALID_INPUT

    @pytest.mark.parametrize("document", [
        "not json",
        json.dumps({"name": "x"}),
        json.dumps([{"file_patches": "oops"}]),
        json.dumps([{"file_patches": [{"disc": "/a.bin", "external": "b.bin", "offset": -8}]}]),
    ])
    def test_invalid_patch_list(self, workspace, tmp_path, capsys, document):
        path = tmp_path / "bad.json"
        path.write_text(document, encoding="utf-8")
        code = main(["apply", str(workspace["base"]), str(path)])
        assert code == EXIT_INVALID_INPUT
        assert "Invalid patch list" in capsys.readouterr().err

    def test_content_error_on_export(self, workspace, tmp_path):
        with patch("disc_overlay.tree.host_tree.export_tree", side_effect=OutOfRangeError("gap")):
            code = main([
                "apply", str(workspace["base"]), str(workspace["patches"]),
                "--output", str(tmp_path / "out"),
            ])
        assert code == EXIT_CONTENT_ERROR


# ---------------------------------------------------------------------------
# TestMain: error handling
# ---------------------------------------------------------------------------
class TestMainErrors:
    def test_invalid_settings(self, monkeypatch, capsys):
        monkeypatch.setenv("DISC_OVERLAY_RAM_BASE", "zz")
        code = main(["resolve", "x", "--sd-root", "/sd"])
        assert code == EXIT_INVALID_INPUT
        assert "Invalid settings" in capsys.readouterr().err

    def test_keyboard_interrupt(self):
        with patch("disc_overlay.cli.main.run_resolve", side_effect=KeyboardInterrupt):
            assert main(["resolve", "x", "--sd-root", "/sd"]) == EXIT_KEYBOARD_INTERRUPT

    def test_unexpected_error(self, capsys):
        with patch("disc_overlay.cli.main.run_resolve", side_effect=RuntimeError("boom")):
            code = main(["resolve", "x", "--sd-root", "/sd"])
        assert code == EXIT_UNEXPECTED
        assert "boom" in capsys.readouterr().err
