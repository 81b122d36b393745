"""Factory helpers for constructing import sessions from configuration."""
from __future__ import annotations

import importlib
from typing import Any, Dict, Optional, Union

from .accounts.memory import AccountStoreError
from .config import ConfigurationError, ImportSettings, directory_config
from .models import ImportKind
from .notifications import LoggingNotifier, NotificationSink
from .orchestrator import ImportSession
from .rate_limit import DelayPolicy, RateLimiter, RecordThrottle


def _load_class(path: str):
    module_name, _, attr = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Invalid directory class path '{path}'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Could not import module '{module_name}'") from exc
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ConfigurationError(f"Module '{module_name}' does not define '{attr}'") from exc


def build_directory(config: Dict[str, Any], settings: Optional[ImportSettings] = None) -> Any:
    """Instantiate the account directory named in the configuration.

    The returned object serves as identity lookup, provisioner, and updater.
    """

    section = directory_config(config)
    options = dict(section["options"])
    if settings is not None:
        options.setdefault("password_length", settings.password_length)

    directory_cls = _load_class(section["class"])
    try:
        return directory_cls(**options)
    except TypeError as exc:
        raise ConfigurationError(f"Invalid options for '{section['class']}': {exc}") from exc
    except (AccountStoreError, OSError) as exc:
        raise ConfigurationError(f"Could not open account directory '{section['class']}': {exc}") from exc


def build_throttle(settings: ImportSettings) -> RecordThrottle:
    rate_limiter = RateLimiter(settings.rate_limit_per_minute) if settings.rate_limit_per_minute else RateLimiter(None)
    return RecordThrottle(
        delay_policy=DelayPolicy(delay_seconds=settings.delay_seconds),
        rate_limiter=rate_limiter,
    )


def build_session(
    kind: Union[str, ImportKind],
    config: Dict[str, Any],
    *,
    directory: Any = None,
    notifier: Optional[NotificationSink] = None,
) -> ImportSession:
    settings = ImportSettings.from_config(config)
    directory = directory if directory is not None else build_directory(config, settings)
    return ImportSession(
        kind,
        lookup=directory,
        provisioner=directory,
        updater=directory,
        throttle=build_throttle(settings),
        notifier=notifier or LoggingNotifier(),
        max_records=settings.max_records,
    )


__all__ = ["build_directory", "build_session", "build_throttle"]
