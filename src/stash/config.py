"""Application configuration.

AppConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups. ``AppConfig.from_env()`` reads ``STASH_*``
environment variables so secrets never live in source.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from stash.errors import ConfigurationError

ENV_PREFIX = "STASH_"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults except ``admin_token``, which must
    be provided before the admin routes can be served::

        config = AppConfig(admin_token="s3cr3t", request_timeout=2.0)
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False

    # Security
    admin_token: str = ""
    admin_prefix: str = "/admin"

    # Limits
    request_timeout: float = 5.0
    max_content_length: int = 2 * 1024 * 1024  # 2 MiB

    # Logging
    log_level: str = "info"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides: object) -> AppConfig:
        """Build a config from ``STASH_<FIELD>`` environment variables.

        Unset variables keep their defaults. Keyword *overrides* win over
        the environment. Raises ``ConfigurationError`` when a variable
        cannot be converted to the field's type.
        """
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}
        for f in fields(cls):
            name = f"{ENV_PREFIX}{f.name.upper()}"
            raw = env.get(name)
            if raw is None:
                continue
            values[f.name] = _convert(name, raw, type(f.default))
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)  # type: ignore[arg-type]


def _convert(name: str, raw: str, target: type) -> object:
    """Convert an environment string to *target* (str, int, float, bool)."""
    if target is bool:
        return raw.strip().lower() in _TRUTHY
    if target is str:
        return raw
    try:
        return target(raw)
    except ValueError:
        msg = f"{name}={raw!r} is not a valid {target.__name__}"
        raise ConfigurationError(msg) from None
