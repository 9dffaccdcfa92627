"""Weighted variants for A/B tests."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from litestar_rollout.exceptions import FlagValidationError

__all__ = ("Variant",)


@dataclass(frozen=True, slots=True)
class Variant:
    """A named, weighted allocation within an enabled flag.

    Weights are relative: ``[2, 1]`` splits subjects two thirds / one third.

    Attributes:
        key: Identifier returned by ``get_variant``.
        name: Human-readable name.
        weight: Non-negative relative weight.
        payload: Opaque data handed back with the variant.
    """

    key: str
    name: str
    weight: float = 0
    payload: Mapping[str, Any] | None = None

    def __post_init__(self) -> None:
        if isinstance(self.weight, bool) or self.weight < 0:
            msg = f"Variant '{self.key}' weight must be a non-negative number, got {self.weight!r}"
            raise FlagValidationError(msg)
