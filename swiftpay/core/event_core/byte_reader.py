"""Bounded little-endian cursor over an event payload."""

from __future__ import annotations

from typing import Optional

from solders.pubkey import Pubkey

from .addresses import is_valid_address

PUBKEY_LEN = 32


class DecodeMiss(Exception):
    """Payload could not be read; never escapes :func:`decode`."""


class ByteReader:
    def __init__(self, data: bytes, offset: int = 0) -> None:
        self._data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def at_end(self) -> bool:
        return self.remaining == 0

    def take(self, size: int) -> bytes:
        if size < 0 or size > self.remaining:
            raise DecodeMiss(
                f"need {size} bytes at offset {self.offset}, {self.remaining} left"
            )
        chunk = self._data[self.offset : self.offset + size]
        self.offset += size
        return chunk

    def pubkey(self) -> str:
        address = str(Pubkey.from_bytes(self.take(PUBKEY_LEN)))
        if not is_valid_address(address):
            raise DecodeMiss(f"malformed address {address!r}")
        return address

    def u8(self) -> int:
        return self.take(1)[0]

    def bool(self) -> bool:
        return self.u8() != 0

    def u32(self) -> int:
        return int.from_bytes(self.take(4), "little")

    def u64(self) -> int:
        return int.from_bytes(self.take(8), "little")

    def i64(self) -> int:
        return int.from_bytes(self.take(8), "little", signed=True)

    def string(self) -> str:
        length = self.u32()
        raw = self.take(length)
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeMiss(f"invalid utf-8 at offset {self.offset - length}") from exc

    def option_string(self) -> Optional[str]:
        flag = self.u8()
        if flag == 0:
            return None
        if flag != 1:
            raise DecodeMiss(f"bad option tag {flag}")
        return self.string()


__all__ = ["ByteReader", "DecodeMiss", "PUBKEY_LEN"]
