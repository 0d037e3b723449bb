"""Runtime configuration for the repository client.

Defaults live in ``Constants``; environment variables override them and an
optional YAML file overrides the environment. Nothing here is process-wide:
each client receives its own ``ClientConfig``.
"""
from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field, fields, replace
from typing import Any, Dict, Mapping, Optional

import yaml

from par_client.constants import Constants

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _default_cache_dir() -> str:
    return os.path.join(tempfile.gettempdir(), Constants.CACHE_DIR_NAME)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_VALUES


@dataclass
class ClientConfig:
    """Tunables for one RepositoryClient."""

    cache_dir: str = field(default_factory=_default_cache_dir)
    temp_dir: str = field(default_factory=tempfile.gettempdir)
    request_timeout: float = float(Constants.REQUEST_TIMEOUT)
    http_retries: int = Constants.HTTP_RETRY_MAX
    verify_checksums: bool = False
    user_agent: str = Constants.USER_AGENT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """Build a config from environment variables.

        ``PAR_CLIENT_CACHE_DIR`` wins over the legacy ``PAR_TEMP``; unset or
        invalid values keep the defaults.
        """
        env = os.environ if environ is None else environ
        config = cls()
        cache_dir = env.get(Constants.ENV_CACHE_DIR) or env.get(Constants.ENV_LEGACY_CACHE_DIR)
        if cache_dir:
            config.cache_dir = cache_dir
        temp_dir = env.get(Constants.ENV_TEMP_DIR)
        if temp_dir:
            config.temp_dir = temp_dir
        timeout = env.get(Constants.ENV_TIMEOUT)
        if timeout:
            try:
                config.request_timeout = float(timeout)
            except ValueError:
                logger.warning("Ignoring invalid %s=%r", Constants.ENV_TIMEOUT, timeout)
        verify = env.get(Constants.ENV_VERIFY_CHECKSUMS)
        if verify is not None:
            config.verify_checksums = _as_bool(verify)
        return config

    def merged(self, overrides: Mapping[str, Any]) -> "ClientConfig":
        """Return a copy with known keys from overrides applied.

        Unknown keys are logged and ignored; values are coerced to the type of
        the field they replace.
        """
        known = {f.name: f for f in fields(self)}
        updates: Dict[str, Any] = {}
        for key, value in overrides.items():
            if key not in known:
                logger.warning("Ignoring unknown configuration key: %s", key)
                continue
            if value is None:
                continue
            current = getattr(self, key)
            try:
                if isinstance(current, bool):
                    updates[key] = _as_bool(value)
                elif isinstance(current, int):
                    updates[key] = int(value)
                elif isinstance(current, float):
                    updates[key] = float(value)
                else:
                    updates[key] = str(value)
            except (TypeError, ValueError):
                logger.warning("Ignoring invalid value for %s: %r", key, value)
        return replace(self, **updates)


def load_config(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> ClientConfig:
    """Load configuration from the environment and an optional YAML file.

    Args:
        path: YAML file; settings may sit under a ``par_client`` key or at the
            top level.
        environ: Environment mapping, defaults to ``os.environ``.

    Returns:
        ClientConfig with file values layered over environment values.
    """
    config = ClientConfig.from_env(environ)
    if not path:
        return config

    if not os.path.isfile(path):
        logger.warning("Config file not found: %s", path)
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return config

    if not isinstance(data, dict):
        return config
    section = data.get("par_client", data)
    if not isinstance(section, dict):
        return config
    return config.merged(section)
