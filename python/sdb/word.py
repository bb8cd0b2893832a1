"""Machine word helpers."""

from __future__ import annotations

from dataclasses import dataclass

SUPPORTED_WORD_BITS = (32, 64)


@dataclass(frozen=True)
class WordSpec:
    """Width of the simulated machine word."""

    bits: int = 32

    def __post_init__(self) -> None:
        if self.bits not in SUPPORTED_WORD_BITS:
            raise ValueError(f"unsupported word width: {self.bits}")

    @property
    def mask(self) -> int:
        return (1 << self.bits) - 1

    @property
    def hex_digits(self) -> int:
        return self.bits // 4

    def wrap(self, value: int) -> int:
        return int(value) & self.mask

    def signed(self, value: int) -> int:
        value = self.wrap(value)
        if value >> (self.bits - 1):
            return value - (1 << self.bits)
        return value

    def format(self, value: int) -> str:
        return f"0x{self.wrap(value):0{self.hex_digits}x}"


WORD32 = WordSpec(32)


__all__ = ["WordSpec", "WORD32", "SUPPORTED_WORD_BITS"]
