"""Fixed-width integer arithmetic for on-disk fields."""
from __future__ import annotations

from stx_core.protocol import I32_MAX, I32_MIN


def clamp_i32(value: int) -> int:
    """Clamp an integer to the signed 32-bit range."""
    return max(I32_MIN, min(I32_MAX, value))


def saturating_add(a: int, b: int) -> int:
    """Add two i32 values, clamping at the bounds instead of wrapping."""
    return clamp_i32(a + b)


def saturating_mul(a: int, b: int) -> int:
    """Multiply two i32 values, clamping at the bounds instead of wrapping."""
    return clamp_i32(a * b)


def is_i32(value: int) -> bool:
    return I32_MIN <= value <= I32_MAX
