"""Config settings – Settings base class."""
from __future__ import annotations

import dataclasses
from typing import ClassVar


@dataclasses.dataclass
class Settings:
    """Dataclass settings read from ``<PREFIX>_<FIELD>`` environment variables.

    Subclasses set ``_prefix`` and override :meth:`_validate` for checks
    that span fields; it runs right after ``__init__``.
    """

    _prefix: ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        pass

    @classmethod
    def env_key(cls, field_name: str) -> str:
        return "_".join(part for part in (cls._prefix, field_name) if part).upper()


__all__ = ["Settings"]
