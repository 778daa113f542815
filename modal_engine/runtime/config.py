"""Centralized configuration ownership for the modal engine."""

from __future__ import annotations

import os
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Mapping

from modal_engine.api.logging import ModalLoggingConfig

DEFAULT_MAX_CONCURRENT_MODALS = 3


@dataclass(frozen=True, slots=True)
class ModalEngineConfig:
    max_concurrent_modals: int = DEFAULT_MAX_CONCURRENT_MODALS
    focus_on_open: bool = True
    lock_background_scroll: bool = True
    logging: ModalLoggingConfig = field(default_factory=ModalLoggingConfig)


_MODAL_CONFIG: ContextVar[ModalEngineConfig | None] = ContextVar("modal_engine_config", default=None)


def _raw(name: str, *, env: Mapping[str, str] | None = None) -> str | None:
    value = os.getenv(name) if env is None else env.get(name)
    return None if value is None else str(value)


def _flag(name: str, default: bool, *, env: Mapping[str, str] | None = None) -> bool:
    raw = _raw(name, env=env)
    if raw is None:
        return bool(default)
    value = raw.strip().lower()
    if value in {"1", "true", "yes", "on"}:
        return True
    if value in {"0", "false", "no", "off"}:
        return False
    return bool(default)


def _int(
    name: str,
    default: int,
    *,
    minimum: int | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    raw = _raw(name, env=env)
    if raw is None:
        value = int(default)
    else:
        try:
            value = int(raw.strip())
        except ValueError:
            value = int(default)
    if minimum is None:
        return value
    return max(int(minimum), value)


def _text(name: str, default: str, *, env: Mapping[str, str] | None = None) -> str:
    raw = _raw(name, env=env)
    if raw is None:
        return str(default)
    value = raw.strip()
    return value if value else str(default)


def _format(raw: str, fallback: str) -> str:
    value = raw.strip().lower()
    return value if value in {"text", "json"} else fallback


def resolve_log_level_name(default: str = "INFO", *, env: Mapping[str, str] | None = None) -> str:
    """Resolve log level with the engine-prefixed override first."""
    value = _raw("MODAL_LOG_LEVEL", env=env)
    if value is None:
        value = _raw("LOG_LEVEL", env=env)
    if value is None or not value.strip():
        value = default
    return value.strip().upper()


def load_modal_config(*, env: Mapping[str, str] | None = None) -> ModalEngineConfig:
    file_path = _text("MODAL_LOG_FILE", "", env=env)
    return ModalEngineConfig(
        max_concurrent_modals=_int(
            "MODAL_MAX_CONCURRENT", DEFAULT_MAX_CONCURRENT_MODALS, minimum=1, env=env
        ),
        focus_on_open=_flag("MODAL_FOCUS_ON_OPEN", True, env=env),
        lock_background_scroll=_flag("MODAL_LOCK_BACKGROUND_SCROLL", True, env=env),
        logging=ModalLoggingConfig(
            level_name=resolve_log_level_name(env=env),
            console_format=_format(_text("MODAL_LOG_FORMAT", "text", env=env), "text"),
            file_path=file_path or None,
            file_format=_format(_text("MODAL_LOG_FILE_FORMAT", "json", env=env), "json"),
            history_capacity=_int("MODAL_LOG_HISTORY_CAPACITY", 1000, minimum=1, env=env),
            mask_sensitive=_flag("MODAL_LOG_MASK_SENSITIVE", True, env=env),
        ),
    )


def initialize_modal_config(*, env: Mapping[str, str] | None = None) -> ModalEngineConfig:
    config = load_modal_config(env=env)
    _MODAL_CONFIG.set(config)
    return config


def set_modal_config(config: ModalEngineConfig) -> ModalEngineConfig:
    _MODAL_CONFIG.set(config)
    return config


def get_modal_config() -> ModalEngineConfig:
    config = _MODAL_CONFIG.get()
    if config is not None:
        return config
    return initialize_modal_config()


__all__ = [
    "DEFAULT_MAX_CONCURRENT_MODALS",
    "ModalEngineConfig",
    "get_modal_config",
    "initialize_modal_config",
    "load_modal_config",
    "resolve_log_level_name",
    "set_modal_config",
]
