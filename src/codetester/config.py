"""
Harness configuration.

Settings come from three places, later ones winning:

1. Built-in defaults.
2. A ``.codetester.toml`` project file in the root directory.
3. ``CODETESTER_*`` environment variables (timeouts and log level only),
   handy for slow CI machines.

Example ``.codetester.toml``::

    language_id = "scala"
    source_suffix = ".scala"
    worksheet_suffix = ".sc"
    request_timeout = 30
    worksheet_timeout = 60
"""
from __future__ import annotations

import logging
import os
import tomllib
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILE = '.codetester.toml'

_LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')

_ENV_OVERRIDES = {
    'CODETESTER_REQUEST_TIMEOUT': 'request_timeout',
    'CODETESTER_WORKSHEET_TIMEOUT': 'worksheet_timeout',
    'CODETESTER_CANCEL_TIMEOUT': 'cancel_timeout',
    'CODETESTER_LOG_LEVEL': 'log_level',
}


class ConfigError(ValueError):
    """Raised for a malformed configuration value."""


@dataclass(frozen=True)
class HarnessConfig:
    root_dir: Path = field(default_factory=Path.cwd)
    language_id: str = 'scala'
    source_suffix: str = '.scala'
    worksheet_suffix: str = '.sc'
    request_timeout: float = 30.0       # seconds, per request
    worksheet_timeout: float = 30.0     # seconds, per worksheet run
    cancel_timeout: float = 10.0        # seconds to wait for a cancelled run to stop
    log_level: str = 'WARNING'


def _coerce(name: str, value: object) -> object:
    if name.endswith('_timeout'):
        try:
            seconds = float(value)
        except (TypeError, ValueError):
            raise ConfigError(f'{name} must be a number of seconds, got {value!r}') from None
        if seconds <= 0:
            raise ConfigError(f'{name} must be positive, got {value!r}')
        return seconds
    if name == 'log_level':
        level = str(value).upper()
        if level not in _LOG_LEVELS:
            raise ConfigError(f'log_level must be one of {", ".join(_LOG_LEVELS)}, got {value!r}')
        return level
    if name == 'root_dir':
        return Path(value)
    if not isinstance(value, str):
        raise ConfigError(f'{name} must be a string, got {value!r}')
    return value


def _read_project_config(root: Path) -> dict[str, object]:
    """Parse ``.codetester.toml`` in *root*; an absent file gives ``{}``."""
    config_path = root / CONFIG_FILE
    if not config_path.exists():
        return {}
    try:
        data = tomllib.loads(config_path.read_text(encoding='utf-8'))
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f'{config_path}: {e}') from e
    known = {f.name for f in fields(HarnessConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        logger.warning('%s: ignoring unknown keys %s', config_path, ', '.join(unknown))
    return {k: _coerce(k, v) for k, v in data.items() if k in known}


def load_config(root: str | os.PathLike | None = None, environ: dict[str, str] | None = None) -> HarnessConfig:
    """Build a :class:`HarnessConfig` for *root* (default: the current directory)."""
    root_dir = Path(root) if root is not None else Path.cwd()
    env = os.environ if environ is None else environ

    values: dict[str, object] = {'root_dir': root_dir}
    values.update(_read_project_config(root_dir))
    for var, name in _ENV_OVERRIDES.items():
        raw = env.get(var)
        if raw:
            values[name] = _coerce(name, raw)

    config = replace(HarnessConfig(), **values)
    logger.debug('load_config: %s', config)
    return config
