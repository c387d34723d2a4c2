from __future__ import annotations

import random
import string


_ID_ALPHABET = string.digits + string.ascii_lowercase
_ID_LENGTH = 9

_default_rng = random.Random()


def generate_id(*, rng: random.Random | None = None) -> str:
    """Return a short opaque id (9 base-36 chars).

    Good enough to keep in-memory ids apart; collisions are not checked.
    """

    source = rng or _default_rng
    return "".join(source.choice(_ID_ALPHABET) for _ in range(_ID_LENGTH))


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x1_0000_0000 if value & 0x8000_0000 else value


def _utf16_units(text: str) -> list[int]:
    raw = text.encode("utf-16-le")
    return [int.from_bytes(raw[i : i + 2], "little") for i in range(0, len(raw), 2)]


def string_to_color(name: str) -> str:
    """Map a display name to a stable `#RRGGBB` color.

    Rolling hash `h = c + (h << 5) - h` over UTF-16 code units, with the shift
    wrapped to a signed 32-bit int, folded to the low 24 bits.
    """

    h = 0
    for unit in _utf16_units(name):
        h = unit + (_to_int32(_to_int32(h) << 5) - h)
    return f"#{_to_int32(h) & 0xFFFFFF:06X}"
