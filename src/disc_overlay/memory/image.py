"""In-process memory image and hook registry implementations."""

from typing import Optional

from pydantic import BaseModel, ConfigDict


def read_u32(image, address: int) -> Optional[int]:
    """Read a big-endian 32-bit word, or None if any byte is unmapped."""
    value = 0
    for i in range(4):
        byte = image.try_read_byte(address + i)
        if byte is None:
            return None
        value = (value << 8) | byte
    return value


def write_u32(image, value: int, address: int) -> int:
    """Write a big-endian 32-bit word; return how many bytes landed."""
    written = 0
    for i, byte in enumerate(value.to_bytes(4, "big")):
        if image.try_write_byte(byte, address + i):
            written += 1
    return written


class ByteArrayMemory:
    """A single mapped region ``[base, base + size)``; everything else is unmapped."""

    def __init__(self, base: int, size: int = 0, data: bytes | None = None):
        self.base = base
        self.data = bytearray(data) if data is not None else bytearray(size)

    def __len__(self) -> int:
        return len(self.data)

    def _index(self, address: int) -> Optional[int]:
        index = address - self.base
        if 0 <= index < len(self.data):
            return index
        return None

    def try_read_byte(self, address: int) -> Optional[int]:
        index = self._index(address)
        return None if index is None else self.data[index]

    def try_write_byte(self, value: int, address: int) -> bool:
        index = self._index(address)
        if index is None:
            return False
        self.data[index] = value & 0xFF
        return True

    def load(self, address: int, payload: bytes) -> None:
        """Copy ``payload`` in at ``address``; raises IndexError if it does not fit."""
        index = self._index(address)
        if index is None or index + len(payload) > len(self.data):
            raise IndexError(f"{len(payload)} bytes at {address:#010x} are outside the image")
        self.data[index:index + len(payload)] = payload

    def dump(self, address: int, length: int) -> bytes:
        index = self._index(address)
        if index is None:
            raise IndexError(f"Address {address:#010x} is outside the image")
        return bytes(self.data[index:index + length])


class Hook(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int
    name: str = ""


class HookTable:
    """Registered intercepts over address ranges."""

    def __init__(self):
        self._hooks: list[Hook] = []

    def __len__(self) -> int:
        return len(self._hooks)

    def __iter__(self):
        return iter(self._hooks)

    def register(self, address: int, size: int = 4, name: str = "") -> Hook:
        hook = Hook(start=address, end=address + size, name=name)
        self._hooks.append(hook)
        return hook

    def unpatch_range(self, start: int, end: int) -> int:
        """Remove every hook overlapping ``[start, end)``; return how many went."""
        kept = [h for h in self._hooks if h.end <= start or h.start >= end]
        removed = len(self._hooks) - len(kept)
        self._hooks = kept
        return removed
