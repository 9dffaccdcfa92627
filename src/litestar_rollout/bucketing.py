"""Deterministic subject bucketing for percentage rollouts and variants.

The hash is a 32-bit signed rolling hash (``h = h * 31 + c``) over the UTF-16
code units of ``"<subject>:<salt>"``. It must stay bit-for-bit identical to the
other services sharing the same flag store, so do not swap it for a stronger
hash: rollout membership would move for every user.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from litestar_rollout.context import EvaluationContext

__all__ = (
    "ANONYMOUS_SUBJECT",
    "BUCKET_COUNT",
    "bucket",
    "subject_for",
    "variant_salt",
)

BUCKET_COUNT = 100
ANONYMOUS_SUBJECT = "anonymous"

_INT32_MASK = 0xFFFFFFFF
_INT32_SIGN = 0x80000000


def _to_int32(value: int) -> int:
    value &= _INT32_MASK
    return value - 0x100000000 if value & _INT32_SIGN else value


def _code_units(text: str) -> list[int]:
    data = text.encode("utf-16-le", "surrogatepass")
    return [int.from_bytes(data[i : i + 2], "little") for i in range(0, len(data), 2)]


def bucket(subject_id: str, salt: str) -> int:
    """Map ``subject_id`` to a stable bucket in ``[0, 100)``.

    Args:
        subject_id: The user, session or other subject identifier.
        salt: Per-purpose salt, usually the flag key.

    Returns:
        An integer bucket. Identical inputs always yield the identical bucket.
    """
    hash_ = 0
    for code in _code_units(f"{subject_id}:{salt}"):
        hash_ = _to_int32((hash_ << 5) - hash_ + code)
    return abs(hash_) % BUCKET_COUNT


def variant_salt(flag_key: str) -> str:
    """Salt used for sticky variant assignment, independent of rollout membership."""
    return f"{flag_key}:variant"


def subject_for(context: EvaluationContext) -> str:
    """Pick the subject to bucket: user id, then session id, then anonymous."""
    return context.user_id or context.session_id or ANONYMOUS_SUBJECT
