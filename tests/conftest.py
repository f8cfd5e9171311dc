from pathlib import Path

import pytest

from disc_overlay.loaders.in_memory import InMemoryDataLoader
from disc_overlay.memory.image import ByteArrayMemory, HookTable
from disc_overlay.models import FileNode, FileRegion, FolderNode, RawBuffer, Segment

RAM_BASE = 0x80000000


def buffer_file(name: str, data: bytes) -> FileNode:
    """A file node backed by one raw buffer segment."""
    segments = [Segment(offset=0, size=len(data), source=RawBuffer(data=data))] if data else []
    return FileNode(name=name, size=len(data), segments=segments)


@pytest.fixture
def external_files():
    return {
        "patches": {
            "ten.bin": bytes(range(100, 110)),
            "five.bin": b"ABCDE",
            "empty.bin": b"",
            "music": {
                "track1.brstm": b"T1" * 8,
                "extra": {"track2.brstm": b"T2" * 4},
            },
            "code.bin": bytes.fromhex("deadbeef"),
        },
        "sd": {
            "save": {},
            "global.bin": b"GLOBAL",
        },
    }


@pytest.fixture
def memory_loader(external_files):
    return InMemoryDataLoader(external_files, sd_root="/sd", patch_root="/patches")


@pytest.fixture
def host_region_file():
    """A 100-byte file made of one host file region."""
    return FileNode(
        name="data.bin",
        size=100,
        segments=[Segment(offset=0, size=100, source=FileRegion(path="/host/data.bin"))],
    )


@pytest.fixture
def sample_tree():
    return FolderNode(
        name="",
        children=[
            FolderNode(
                name="Stage",
                children=[
                    buffer_file("Level1.arc", b"L1" * 16),
                    FolderNode(name="Nested", children=[buffer_file("deep.bin", b"d" * 8)]),
                ],
            ),
            FolderNode(name="Sound", children=[buffer_file("track1.brstm", b"s" * 32)]),
            buffer_file("opening.bnr", b"o" * 64),
        ],
    )


@pytest.fixture
def main_node():
    return buffer_file("main.dol", b"\x00" * 0x40)


@pytest.fixture
def ram():
    return ByteArrayMemory(RAM_BASE, size=0x1000)


@pytest.fixture
def hooks():
    return HookTable()


@pytest.fixture
def host_sd(tmp_path: Path) -> Path:
    """A host SD-card folder with a patch folder inside it."""
    sd = tmp_path / "sd"
    (sd / "mod" / "files" / "sub").mkdir(parents=True)
    (sd / "mod" / "files" / "a.bin").write_bytes(b"AAAA")
    (sd / "mod" / "files" / "sub" / "b.bin").write_bytes(b"BBBBBBBB")
    (sd / "shared.bin").write_bytes(b"SHARED")
    (tmp_path / "outside.bin").write_bytes(b"SECRET")
    return sd


@pytest.fixture
def make_buffer_file():
    return buffer_file
