"""Random 128-bit identifiers for sketches and boards."""

from __future__ import annotations

import secrets
from dataclasses import dataclass

UUID_SIZE = 16


@dataclass(frozen=True)
class Uuid:
    """A 16-byte identifier, rendered as upper-case hexadecimal."""

    value: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.value, (bytes, bytearray)):
            raise TypeError("Uuid value must be bytes")
        if len(self.value) != UUID_SIZE:
            raise ValueError(f"Uuid value must be {UUID_SIZE} bytes, got {len(self.value)}")
        object.__setattr__(self, "value", bytes(self.value))

    def to_hex(self) -> str:
        """Return the identifier as 32 upper-case hexadecimal digits."""
        return self.value.hex().upper()

    @classmethod
    def generate(cls) -> "Uuid":
        """Create a new identifier from a cryptographically strong source."""
        return cls(secrets.token_bytes(UUID_SIZE))

    def __str__(self) -> str:
        return self.to_hex()