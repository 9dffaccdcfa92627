"""Load default flag definitions from a mapping or a JSON file."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from litestar_rollout.exceptions import ConfigurationError, FlagValidationError
from litestar_rollout.models.flag import FlagCreate
from litestar_rollout.serialization import flag_create_from_dict

__all__ = ("BootstrapLoader",)

logger = logging.getLogger(__name__)


class BootstrapLoader:
    """Turn bootstrap data into :class:`~litestar_rollout.models.flag.FlagCreate` inputs.

    The expected shape is ``{"flags": [{"key": ..., "name": ..., ...}, ...]}`` with
    the same camelCase fields as stored flags.
    """

    def load(self, source: Mapping[str, Any] | str | Path) -> list[FlagCreate]:
        if isinstance(source, Mapping):
            return self.load_from_dict(source)
        return self.load_from_file(source)

    def load_from_dict(self, data: Mapping[str, Any]) -> list[FlagCreate]:
        entries = data.get("flags")
        if not isinstance(entries, list):
            raise ConfigurationError("Bootstrap data must contain a 'flags' list")

        flags: list[FlagCreate] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, Mapping):
                raise ConfigurationError(f"Bootstrap flag #{index} must be an object")
            try:
                flags.append(flag_create_from_dict(entry))
            except (FlagValidationError, KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid bootstrap flag #{index}: {exc}") from exc
        logger.debug("Loaded %d bootstrap flags", len(flags))
        return flags

    def load_from_file(self, path: str | Path) -> list[FlagCreate]:
        path = Path(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError as exc:
            raise ConfigurationError(f"Bootstrap file not found: {path}") from exc
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Bootstrap file {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Bootstrap file {path} must contain a JSON object")
        return self.load_from_dict(data)
