"""Configuration management for condbuilder.

Configuration Discovery Precedence (Highest to Lowest Priority):
===============================================================

1. **CONDBUILDER_CONFIG_DIR Environment Variable** (Highest Priority)
   - Looks for: `${CONDBUILDER_CONFIG_DIR}/condbuilder.yaml`

2. **Current Working Directory**
   - Looks for: `./condbuilder.yaml`

3. **~/.condbuilder Directory** (Fallback)
   - Looks for: `~/.condbuilder/condbuilder.yaml`

The first existing `condbuilder.yaml` found in this order is used.
If none is found, default configuration is applied.

Example condbuilder.yaml:
-------------------------
condbuilder:
  encoding: yaml
  hooks:
    render_key: quote_identifier
    render_value: condbuilder.pipeline.hooks.quoting.quote_literal
    validate:
      hook: key_whitelist
      params:
        keys: [name, age]
"""

import importlib
import logging
import os
import threading
from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from condbuilder.exceptions import ConfigurationError
from condbuilder.pipeline.hook import CAMEL_CASE_NAMES, HOOK_NAMES, HookSet, get_registry

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "condbuilder.yaml"


class CondBuilderConfig(BaseSettings):
    """Main configuration for condbuilder that reads from condbuilder.yaml."""

    model_config = SettingsConfigDict(
        env_prefix="CONDBUILDER_",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False

    # Output encoding used by the CLI
    encoding: Literal["json", "yaml"] = "json"

    # Hook slot -> registered hook name / import path, or {"hook": ..., "params": {...}}
    hooks: dict[str, str | dict[str, Any]] = Field(default_factory=dict)

    # Path to condbuilder config
    config_path: Path = Field(default_factory=lambda: Path(CONFIG_FILENAME))

    def build_hook_set(self) -> HookSet:
        """Resolve the configured hooks into a HookSet.

        Returns:
            HookSet with every configured slot bound

        Raises:
            ConfigurationError: On unknown slots or hooks that cannot be loaded
        """
        resolved: dict[str, Callable[..., Any]] = {}
        for slot, entry in self.hooks.items():
            field_name = CAMEL_CASE_NAMES.get(slot, slot)
            if field_name not in HOOK_NAMES:
                raise ConfigurationError(f"Unknown hook slot '{slot}' in configuration")

            # Parse hook entry (string or dict format)
            if isinstance(entry, str):
                hook_ref = entry
                params: dict[str, Any] = {}
            else:
                hook_ref = entry.get("hook", "")
                params = entry.get("params") or {}
                if not hook_ref:
                    raise ConfigurationError(f"Hook entry for '{slot}' missing 'hook' key: {entry}")

            resolved[field_name] = load_hook(hook_ref, params)
            logger.debug(f"Loaded hook: {hook_ref} for {slot}" + (f" with params: {params}" if params else ""))
        return HookSet(**resolved)

    @classmethod
    def from_yaml(cls, yaml_path: Path, **kwargs: Any) -> "CondBuilderConfig":
        """Load configuration from condbuilder.yaml file.

        Args:
            yaml_path: Path to the condbuilder.yaml file
            **kwargs: Additional keyword arguments

        Returns:
            CondBuilderConfig instance

        Raises:
            ConfigurationError: If the file cannot be parsed
        """
        instance = cls(config_path=yaml_path, **kwargs)
        if not yaml_path.exists():
            return instance

        try:
            with yaml_path.open() as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {yaml_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"Expected a mapping in {yaml_path}, got {type(data).__name__}")
        section = data.get("condbuilder", {}) or {}

        if "debug" in section:
            instance.debug = bool(section["debug"])
        if "encoding" in section:
            if section["encoding"] not in ("json", "yaml"):
                raise ConfigurationError(f"Unknown encoding: {section['encoding']!r}")
            instance.encoding = section["encoding"]

        hooks_data = section.get("hooks", {})
        if hooks_data:
            if not isinstance(hooks_data, dict):
                raise ConfigurationError(f"Invalid hooks config format: {type(hooks_data).__name__}")
            instance.hooks = hooks_data

        unknown = set(section) - {"debug", "encoding", "hooks"}
        if unknown:
            logger.warning("Ignoring unknown condbuilder settings: %s", sorted(unknown))

        return instance


def load_hook(hook_ref: str, params: dict[str, Any] | None = None) -> Callable[..., Any]:
    """Load a hook by registered name or Python import path.

    Functions declared with ``@hook`` are bound with ``params``; any other
    callable is used as is and takes the context only.

    Raises:
        ConfigurationError: If the hook cannot be found
    """
    # Importing the package registers the built-in hooks
    importlib.import_module("condbuilder.pipeline.hooks")

    spec = get_registry().get_spec(hook_ref)
    if spec is not None:
        return spec.bind(params)

    if "." not in hook_ref:
        raise ConfigurationError(f"Unknown hook '{hook_ref}'")
    try:
        module_path, func_name = hook_ref.rsplit(".", 1)
        module = importlib.import_module(module_path)
        hook_func = getattr(module, func_name)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Failed to load hook {hook_ref}: {e}") from e

    hook_spec = getattr(hook_func, "_hook_spec", None)
    if hook_spec is not None:
        return hook_spec.bind(params)
    if not callable(hook_func):
        raise ConfigurationError(f"Hook {hook_ref} is not callable")
    if params:
        logger.warning("Hook %s is not a registered hook, ignoring params: %s", hook_ref, params)
    return hook_func


# Global configuration instance
_config_instance: CondBuilderConfig | None = None
_config_lock = threading.Lock()


def get_config() -> CondBuilderConfig:
    """Get the configuration instance."""
    global _config_instance

    if _config_instance is None:
        with _config_lock:
            # Double-check locking pattern
            if _config_instance is None:
                _config_instance = _discover_config()

    return _config_instance


def _discover_config() -> CondBuilderConfig:
    # Priority 1: Environment variable
    env_config_dir = os.environ.get("CONDBUILDER_CONFIG_DIR")
    if env_config_dir:
        config_path = Path(env_config_dir) / CONFIG_FILENAME
        logger.info(f"Using config directory from environment: {env_config_dir}")
        if config_path.exists():
            return CondBuilderConfig.from_yaml(config_path)
        logger.info(f"{CONFIG_FILENAME} not found at {config_path}, using default config")
        return CondBuilderConfig(config_path=config_path)

    # Priority 2: Current working directory
    cwd_path = Path.cwd() / CONFIG_FILENAME
    if cwd_path.exists():
        logger.info(f"Loading condbuilder config from: {cwd_path}")
        return CondBuilderConfig.from_yaml(cwd_path)

    # Priority 3: Fallback to ~/.condbuilder directory
    fallback_path = Path.home() / ".condbuilder" / CONFIG_FILENAME
    if fallback_path.exists():
        logger.info(f"Using fallback config: {fallback_path}")
        return CondBuilderConfig.from_yaml(fallback_path)

    logger.info(f"No {CONFIG_FILENAME} found in any location, using defaults")
    return CondBuilderConfig()


def set_config_instance(config: CondBuilderConfig) -> None:
    """Set the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = config


def clear_config_instance() -> None:
    """Clear the global configuration instance (for testing)."""
    global _config_instance
    _config_instance = None
