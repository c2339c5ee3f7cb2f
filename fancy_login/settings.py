#!/usr/bin/env python3
"""
Fancy Login - Runtime Settings

Process-level settings read once from FANCY_* environment variables and
passed explicitly to the components that need them.
"""

import os
import sys
import tempfile
from dataclasses import dataclass, replace
from pathlib import Path

DEFAULT_REGION = "eu-central-1"

CONFIG_FILE_NAME = ".fancy-config.yaml"
CONTEXTS_FILE_NAME = ".fancy-contexts.conf"
NAMESPACES_FILE_NAME = ".fancy-namespaces.conf"


def _env_bool(key: str) -> bool:
    return os.environ.get(key, "") in ("1", "true")


def _default_bin_dir(home: Path) -> Path:
    if sys.platform.startswith("win"):
        return home / "AppData" / "Local" / "fancy-login"
    return home / ".local" / "bin"


def _default_profile_temp() -> Path:
    if sys.platform.startswith("win"):
        return Path(tempfile.gettempdir()) / "aws_profile.ps1"
    return Path("/tmp/aws_profile.sh")


@dataclass(frozen=True)
class Settings:
    """Runtime settings for a fancy-login process."""

    home_dir: Path
    bin_dir: Path
    aws_dir: Path
    kube_dir: Path
    log_dir: Path
    namespace_config: Path
    profile_temp: Path
    default_region: str = DEFAULT_REGION
    aws_region: str = ""
    verbose: bool = False
    debug: bool = False
    use_k9s: bool = False
    force_aws_login: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        home = Path(os.environ.get("HOME") or Path.home())
        bin_dir = Path(os.environ.get("FANCY_BIN_DIR", str(_default_bin_dir(home))))

        return cls(
            home_dir=home,
            bin_dir=bin_dir,
            aws_dir=Path(os.environ.get("FANCY_AWS_DIR", str(home / ".aws"))),
            kube_dir=Path(os.environ.get("FANCY_KUBE_DIR", str(home / ".kube"))),
            log_dir=Path(os.environ.get(
                "FANCY_LOG_DIR",
                str(home / ".fancy-login" / "logs")
            )),
            namespace_config=Path(os.environ.get(
                "FANCY_NAMESPACE_CONFIG",
                str(bin_dir / NAMESPACES_FILE_NAME)
            )),
            profile_temp=Path(os.environ.get(
                "FANCY_PROFILE_TEMP",
                str(_default_profile_temp())
            )),
            default_region=os.environ.get("FANCY_DEFAULT_REGION") or DEFAULT_REGION,
            aws_region=os.environ.get("AWS_REGION", ""),
            verbose=_env_bool("FANCY_VERBOSE"),
            debug=_env_bool("FANCY_DEBUG"),
        )

    def with_overrides(self, **changes) -> "Settings":
        """Return a copy with CLI flag overrides applied."""
        return replace(self, **changes)

    # --- File locations ---

    def home_config_path(self) -> Path:
        return self.home_dir / CONFIG_FILE_NAME

    def local_config_path(self) -> Path:
        return Path.cwd() / CONFIG_FILE_NAME

    def contexts_config_path(self) -> Path:
        """Legacy context rules, working directory copy first."""
        local = Path.cwd() / CONTEXTS_FILE_NAME
        if local.exists():
            return local
        return self.bin_dir / CONTEXTS_FILE_NAME

    def aws_config_path(self) -> Path:
        path = os.environ.get("AWS_CONFIG_FILE")
        if path:
            return Path(path)
        return self.aws_dir / "config"

    def kube_config_path(self) -> Path:
        path = os.environ.get("KUBECONFIG")
        if path:
            # Only the first entry of a KUBECONFIG list is read
            return Path(path.split(os.pathsep)[0])
        return self.kube_dir / "config"
