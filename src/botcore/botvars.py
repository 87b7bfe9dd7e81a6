"""Bot variables: named runtime settings with change notifications."""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeAlias

import anyio
import msgspec

from .config import ConfigError
from .logging import get_logger

logger = get_logger(__name__)

STATE_VERSION = 1

BotVarValue = str | int | float | bool | list[Any] | dict[str, Any]
BotVarCallback: TypeAlias = Callable[["BotVar"], Awaitable[None] | None]


class BotVar(msgspec.Struct, frozen=True):
    name: str
    value: BotVarValue

    @property
    def is_string(self) -> bool:
        return isinstance(self.value, str)

    @property
    def string(self) -> str:
        return self.value if isinstance(self.value, str) else ""

    @property
    def is_bool(self) -> bool:
        return isinstance(self.value, bool)

    @property
    def is_int(self) -> bool:
        return isinstance(self.value, int) and not isinstance(self.value, bool)


class _BotVarState(msgspec.Struct, forbid_unknown_fields=False):
    version: int
    vars: dict[str, BotVarValue] = msgspec.field(default_factory=dict)


class BotVarStore:
    """In-memory bot variables, optionally persisted to a JSON file.

    Subscribers are called one at a time, in subscription order, after every
    ``set``. A failing subscriber is logged and does not stop the others.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = anyio.Lock()
        self._vars: dict[str, BotVar] = {}
        self._subscribers: dict[str, list[BotVarCallback]] = {}
        if path is not None:
            self._load()

    @property
    def path(self) -> Path | None:
        return self._path

    def _load(self) -> None:
        assert self._path is not None
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise ConfigError(
                f"Failed to read bot variables {self._path}: {exc}"
            ) from exc
        try:
            state = msgspec.json.decode(raw, type=_BotVarState)
        except msgspec.DecodeError as exc:
            logger.warning("botvars.load_failed", path=str(self._path), error=str(exc))
            return
        if state.version != STATE_VERSION:
            logger.warning(
                "botvars.version_mismatch",
                path=str(self._path),
                version=state.version,
                expected=STATE_VERSION,
            )
            return
        self._vars = {
            name: BotVar(name=name, value=value) for name, value in state.vars.items()
        }

    def _save_locked(self, new_vars: dict[str, BotVar]) -> None:
        if self._path is None:
            return
        state = _BotVarState(
            version=STATE_VERSION,
            vars={name: var.value for name, var in sorted(new_vars.items())},
        )
        payload = msgspec.json.format(msgspec.json.encode(state), indent=2)
        tmp_path = self._path.with_suffix(f"{self._path.suffix}.tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_bytes(payload + b"\n")
            os.replace(tmp_path, self._path)
        except OSError as exc:
            logger.error("botvars.save_failed", path=str(self._path), error=str(exc))
            raise ConfigError(
                f"Failed to write bot variables {self._path}: {exc}"
            ) from exc

    def get(self, name: str) -> BotVar | None:
        return self._vars.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(sorted(self._vars))

    def subscribe_to_update(self, name: str, callback: BotVarCallback) -> None:
        self._subscribers.setdefault(name, []).append(callback)

    async def set(self, name: str, value: BotVarValue) -> BotVar:
        """Store *value* and notify subscribers.

        Raises :class:`ConfigError` when the file cannot be written; the
        previous value is kept and nobody is notified.
        """
        var = BotVar(name=name, value=value)
        async with self._lock:
            new_vars = {**self._vars, name: var}
            self._save_locked(new_vars)
            self._vars = new_vars
            await self._notify_locked(var)
        return var

    async def delete(self, name: str) -> bool:
        async with self._lock:
            if name not in self._vars:
                return False
            new_vars = {key: var for key, var in self._vars.items() if key != name}
            self._save_locked(new_vars)
            self._vars = new_vars
        return True

    async def _notify_locked(self, var: BotVar) -> None:
        for callback in tuple(self._subscribers.get(var.name, ())):
            try:
                result = callback(var)
                if result is not None:
                    await result
            except Exception as exc:
                logger.exception(
                    "botvars.subscriber_failed",
                    name=var.name,
                    error=str(exc),
                    error_type=exc.__class__.__name__,
                )
