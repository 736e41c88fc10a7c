"""Config settings – EnvSettingsLoader, DotenvSettingsLoader."""
from __future__ import annotations

import abc
import dataclasses
import os
import typing
from typing import Any, Callable, Mapping, TypeVar

from dotenv import dotenv_values

from fundly_events.config.settings.base import Settings
from fundly_events.config.validation import InvalidSettingValueError, MissingRequiredSettingError

T = TypeVar("T", bound=Settings)
Parser = Callable[[str], Any]

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in _TRUTHY


def _parse_list(raw: str) -> list[str]:
    return [item.strip() for item in raw.split(",") if item.strip()]


_PARSERS: dict[Any, Parser] = {bool: _parse_bool, int: int, float: float, str: str}


def _parser_for(hint: Any) -> Parser:
    if typing.get_origin(hint) is list:
        return _parse_list
    args = typing.get_args(hint)
    present = [a for a in args if a is not type(None)]
    if present and len(present) < len(args):
        # optional field: an empty variable means None
        inner = _parser_for(present[0])
        return lambda raw: None if raw == "" else inner(raw)
    return _PARSERS.get(hint, str)


class SettingsLoader(abc.ABC):
    """Port: load settings from an external source."""

    @abc.abstractmethod
    def load(self, settings_class: type[T]) -> T: ...


class EnvSettingsLoader(SettingsLoader):
    """Build settings from environment variables.

    *environ* defaults to ``os.environ`` as it is at :meth:`load` time.
    Fields without a variable keep their default.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def load(self, settings_class: type[T]) -> T:
        environ = os.environ if self._environ is None else self._environ
        hints = typing.get_type_hints(settings_class)
        values: dict[str, Any] = {}
        for field in dataclasses.fields(settings_class):
            key = settings_class.env_key(field.name)
            raw = environ.get(key)
            if raw is None:
                if field.default is dataclasses.MISSING and field.default_factory is dataclasses.MISSING:
                    raise MissingRequiredSettingError(key)
                continue
            try:
                values[field.name] = _parser_for(hints.get(field.name, str))(raw)
            except ValueError as exc:
                raise InvalidSettingValueError(key, raw, str(exc)) from exc
        return settings_class(**values)


class DotenvSettingsLoader(SettingsLoader):
    """Layer a ``.env`` file under the process environment.

    Variables already set in the environment win unless *override* is true.
    ``os.environ`` itself is never modified.
    """

    def __init__(self, env_file: str = ".env", override: bool = False) -> None:
        self._env_file = env_file
        self._override = override

    def load(self, settings_class: type[T]) -> T:
        from_file = {k: v for k, v in dotenv_values(self._env_file).items() if v is not None}
        if self._override:
            merged = {**os.environ, **from_file}
        else:
            merged = {**from_file, **os.environ}
        return EnvSettingsLoader(merged).load(settings_class)


__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "SettingsLoader"]
