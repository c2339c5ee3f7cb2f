#!/usr/bin/env python3
"""
Fancy Login - Configuration Store

Loads and saves the profile configuration document (.fancy-config.yaml).

A `.fancy-config.yaml` in the current working directory takes precedence
over the one in the home directory, so a development checkout can override
the installed configuration. The path is resolved on every call.

Document layout:
    profile_configs:
      <profile name>: {name, account_id, ecr_login, ecr_region,
                       k8s_context, k9s_auto_launch, display_name}
    settings: {default_region, config_wizard_run, prefer_local_configs}
"""

import os
import tempfile
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .errors import ConfigParseError, ConfigWriteError
from .logger import FancyLogger, NullLogger
from .settings import DEFAULT_REGION, Settings


@dataclass
class ProfileConfig:
    """Directives configured for one AWS profile."""
    name: str
    account_id: str = ""
    ecr_login: bool = False
    ecr_region: str = ""
    k8s_context: str = ""
    k9s_auto_launch: bool = False
    display_name: str = ""

    @property
    def label(self) -> str:
        """Name shown to the operator."""
        return self.display_name or self.name

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "account_id": self.account_id,
            "ecr_login": self.ecr_login,
            "ecr_region": self.ecr_region,
            "k8s_context": self.k8s_context,
            "k9s_auto_launch": self.k9s_auto_launch,
        }
        if self.display_name:
            data["display_name"] = self.display_name
        return data


@dataclass
class GlobalSettings:
    default_region: str = DEFAULT_REGION
    config_wizard_run: bool = False
    prefer_local_configs: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_region": self.default_region,
            "config_wizard_run": self.config_wizard_run,
            "prefer_local_configs": self.prefer_local_configs,
        }


@dataclass
class FancyConfig:
    """The whole configuration document."""
    profile_configs: Dict[str, ProfileConfig] = field(default_factory=dict)
    settings: GlobalSettings = field(default_factory=GlobalSettings)

    @classmethod
    def default(cls, default_region: str = DEFAULT_REGION) -> "FancyConfig":
        return cls(settings=GlobalSettings(default_region=default_region))

    # --- Profile lookups ---

    def get_profile_config(self, profile: str) -> Optional[ProfileConfig]:
        return self.profile_configs.get(profile)

    def has_profile(self, profile: str) -> bool:
        return profile in self.profile_configs

    def should_perform_ecr_login(self, profile: str) -> bool:
        config = self.get_profile_config(profile)
        return bool(config and config.ecr_login)

    def should_auto_launch_k9s(self, profile: str) -> bool:
        config = self.get_profile_config(profile)
        return bool(config and config.k9s_auto_launch)

    def k8s_context_for(self, profile: str) -> str:
        config = self.get_profile_config(profile)
        return config.k8s_context if config else ""

    def ecr_region_for(self, profile: str) -> str:
        """ECR region for a profile, falling back to the default region."""
        config = self.get_profile_config(profile)
        if config and config.ecr_region:
            return config.ecr_region
        return self.settings.default_region or ""

    # --- Serialization ---

    def to_dict(self) -> Dict[str, Any]:
        return {
            "profile_configs": {
                name: self.profile_configs[name].to_dict()
                for name in sorted(self.profile_configs)
            },
            "settings": self.settings.to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Any,
        source: str = "<config>",
        default_region: str = DEFAULT_REGION
    ) -> "FancyConfig":
        """
        Build a FancyConfig from parsed YAML.

        Missing or null sections count as empty; anything else must be a
        mapping. default_region fills a settings section that omits it.

        Raises:
            ConfigParseError: Any section or field has the wrong shape
        """
        if data is None:
            return cls.default(default_region)
        if not isinstance(data, dict):
            raise ConfigParseError(source, "top level is not a mapping")

        raw_profiles = _section(data, "profile_configs")
        if not isinstance(raw_profiles, dict):
            raise ConfigParseError(source, "profile_configs is not a mapping")

        profiles = {}
        for key in raw_profiles:
            where = f"profile_configs.{key}"
            values = _typed_fields(ProfileConfig, _section(raw_profiles, key), source, where)
            values.setdefault("name", "")
            profiles[str(key)] = ProfileConfig(**values)

        values = _typed_fields(GlobalSettings, _section(data, "settings"), source, "settings")
        values.setdefault("default_region", default_region)
        settings = GlobalSettings(**values)

        config = cls(profile_configs=profiles, settings=settings)
        normalize(config)
        return config


def _section(mapping: Dict[str, Any], key: Any) -> Any:
    """A nested section; only a missing key or null reads as empty."""
    value = mapping.get(key)
    return {} if value is None else value


def _typed_fields(cls, raw: Any, source: str, where: str) -> Dict[str, Any]:
    """Check a mapping against a dataclass's field types. Unknown keys are dropped."""
    if not isinstance(raw, dict):
        raise ConfigParseError(source, f"{where} is not a mapping")

    values = {}
    for f in fields(cls):
        if f.name not in raw or raw[f.name] is None:
            continue
        value = raw[f.name]
        if f.type in (bool, "bool"):
            if not isinstance(value, bool):
                raise ConfigParseError(source, f"{where}.{f.name} must be true or false")
        elif isinstance(value, bool) or not isinstance(value, (str, int)):
            raise ConfigParseError(source, f"{where}.{f.name} must be a string")
        else:
            # Account ids are often written unquoted
            value = str(value)
        values[f.name] = value
    return values


def normalize(config: FancyConfig) -> FancyConfig:
    """Fill defaults that depend on the document itself."""
    for key, profile in config.profile_configs.items():
        if not profile.name:
            profile.name = key
    return config


def atomic_write(filepath: Path, text: str) -> None:
    """Write text to file atomically to prevent corruption."""
    with tempfile.NamedTemporaryFile(
        mode='w',
        dir=str(filepath.parent),
        prefix=f".{filepath.name}.",
        suffix='.tmp',
        delete=False
    ) as f:
        temp_file = f.name
        f.write(text)

    try:
        os.replace(temp_file, filepath)
    except OSError:
        os.unlink(temp_file)
        raise


def dump_config(config: FancyConfig) -> str:
    """Serialize a config document to YAML text."""
    return yaml.safe_dump(
        config.to_dict(),
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


class ConfigStore:
    """Durable storage for the FancyConfig document."""

    def __init__(self, settings: Settings, logger: Optional[FancyLogger] = None):
        self.settings = settings
        self.logger = logger or NullLogger()

    def path(self) -> Path:
        """Working-directory config if present, otherwise the home config."""
        local = self.settings.local_config_path()
        if local.exists():
            return local.resolve()
        return self.settings.home_config_path()

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> FancyConfig:
        """
        Load the configuration document.

        Returns defaults when no file exists.

        Raises:
            ConfigParseError: File exists but is unreadable or malformed
        """
        path = self.path()
        if not path.exists():
            self.logger.log_info(f"No config at {path}, using defaults")
            return FancyConfig.default(self.settings.default_region)

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigParseError(path, str(e))
        except UnicodeDecodeError as e:
            raise ConfigParseError(path, f"not valid UTF-8 text ({e.reason})")
        except OSError as e:
            raise ConfigParseError(path, e.strerror or str(e))

        config = FancyConfig.from_dict(data, str(path), self.settings.default_region)
        self.logger.log_info(
            f"Loaded config from {path} ({len(config.profile_configs)} profiles)"
        )
        return config

    def save(self, config: FancyConfig) -> Path:
        """
        Overwrite the configuration document.

        Returns:
            The path written

        Raises:
            ConfigWriteError: Directory or file cannot be written
        """
        path = self.path()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            atomic_write(path, dump_config(config))
        except OSError as e:
            raise ConfigWriteError(path, e.strerror or str(e))

        self.logger.log_info(f"Saved config to {path}")
        return path
