#!/usr/bin/env python3
"""
Fancy Login - Profile Selector

Builds the annotated profile list shown in fzf and maps the chosen line back
to the AWS profile name. Display text is presentation only; resolution
always uses ProfileDisplayInfo.name.

Layout:
    === QUICK ACCESS (K9S AUTO-LAUNCH) ===
    ★ acme-dev      | ECR | k8s:dev | auto-k9s

    === OTHER CONFIGURED PROFILES ===
      acme-prod     | k8s:prod

    === UNCONFIGURED PROFILES ===
               sandbox
"""

import subprocess
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .config_store import FancyConfig, ProfileConfig
from .errors import ExternalToolFailure, ProfileSelectionError, SelectionTimeout
from .logger import FancyLogger, NullLogger

SEPARATOR_NAME = "---"
QUICK_ACCESS_HEADER = "=== QUICK ACCESS (K9S AUTO-LAUNCH) ==="
CONFIGURED_HEADER = "=== OTHER CONFIGURED PROFILES ==="
UNCONFIGURED_HEADER = "=== UNCONFIGURED PROFILES ==="
ALL_CONFIGURED_HINT = "✓ All AWS profiles are configured! Run --config to modify settings."

QUICK_ACCESS_PREFIX = "★ "
CONFIGURED_PREFIX = "  "
UNCONFIGURED_INDENT = " " * 11

SELECTION_TIMEOUT = 60


@dataclass
class ProfileDisplayInfo:
    name: str
    display_text: str
    is_configured: bool = False
    metadata: str = ""

    @property
    def is_separator(self) -> bool:
        return self.name == SEPARATOR_NAME


def _separator(text: str = "") -> ProfileDisplayInfo:
    return ProfileDisplayInfo(name=SEPARATOR_NAME, display_text=text)


def build_profile_metadata(config: ProfileConfig) -> str:
    """Summarize configured directives, e.g. '| ECR | k8s:dev | auto-k9s'."""
    parts = []
    if config.ecr_login:
        parts.append("ECR")
    if config.k8s_context:
        parts.append(f"k8s:{config.k8s_context}")
    if config.k9s_auto_launch:
        parts.append("auto-k9s")

    if not parts:
        return ""
    return "| " + " | ".join(parts)


def build_profile_display(
    aws_profiles: Iterable[str],
    config: FancyConfig
) -> List[ProfileDisplayInfo]:
    """
    Build the grouped, aligned selection rows.

    Args:
        aws_profiles: Profile names present in the AWS config
        config: Configuration document used for annotation only

    Returns:
        Rows in display order, separators included
    """
    available = list(dict.fromkeys(aws_profiles))
    configured = [
        config.profile_configs[name]
        for name in available
        if name in config.profile_configs
    ]
    configured_names = {name for name in available if name in config.profile_configs}

    def prefixed(profile_config: ProfileConfig) -> str:
        prefix = QUICK_ACCESS_PREFIX if profile_config.k9s_auto_launch else CONFIGURED_PREFIX
        return prefix + profile_config.label

    width = max((len(prefixed(p)) for p in configured), default=0)

    quick_access = []
    others = []
    for name in available:
        if name not in configured_names:
            continue
        profile_config = config.profile_configs[name]
        metadata = build_profile_metadata(profile_config)
        text = prefixed(profile_config)
        if metadata:
            text = f"{text.ljust(width)} {metadata}"

        row = ProfileDisplayInfo(
            name=name,
            display_text=text,
            is_configured=True,
            metadata=metadata,
        )
        if profile_config.k9s_auto_launch:
            quick_access.append((profile_config.label, row))
        else:
            others.append((profile_config.label, row))

    quick_access.sort(key=lambda item: item[0])
    others.sort(key=lambda item: item[0])

    rows: List[ProfileDisplayInfo] = []
    if quick_access:
        rows.append(_separator(QUICK_ACCESS_HEADER))
        rows.extend(row for _, row in quick_access)

    if others:
        if quick_access:
            rows.append(_separator())
        rows.append(_separator(CONFIGURED_HEADER))
        rows.extend(row for _, row in others)

    unconfigured = sorted(name for name in available if name not in configured_names)
    if unconfigured:
        if configured:
            rows.append(_separator())
        rows.append(_separator(UNCONFIGURED_HEADER))
        for name in unconfigured:
            rows.append(ProfileDisplayInfo(
                name=name,
                display_text=f"{UNCONFIGURED_INDENT}{name}",
            ))
    elif configured:
        rows.append(_separator())
        rows.append(_separator(ALL_CONFIGURED_HINT))

    return rows


def lookup_profile(
    rows: List[ProfileDisplayInfo],
    chosen_text: str
) -> Optional[ProfileDisplayInfo]:
    """
    Map the line fzf returned back to its row.

    An exact match on any row wins. fzf may strip leading whitespace, so a
    trimmed comparison is only tried when no row matches exactly.
    Separator rows never match.
    """
    chosen = chosen_text.strip("\n")
    candidates = [row for row in rows if not row.is_separator]
    for row in candidates:
        if row.display_text == chosen:
            return row
    for row in candidates:
        if row.display_text.strip() == chosen.strip():
            return row
    return None


def fzf_select(
    items: List[str],
    prompt: str,
    what: str = "",
    timeout: float = SELECTION_TIMEOUT
) -> Optional[str]:
    """
    Let the operator pick one line with fzf.

    Returns:
        The chosen line, or None when the operator cancelled or chose nothing

    Raises:
        SelectionTimeout: fzf did not finish within `timeout` seconds
        ExternalToolFailure: fzf is missing or failed
    """
    command = ["fzf", f"--prompt={prompt}"]
    try:
        result = subprocess.run(
            command,
            input="\n".join(items),
            stdout=subprocess.PIPE,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        raise SelectionTimeout(what or "fzf", timeout)
    except OSError as e:
        raise ExternalToolFailure(command, None, str(e))

    # 1: no match, 130: interrupted with Ctrl-C or Esc
    if result.returncode in (1, 130):
        return None
    if result.returncode != 0:
        raise ExternalToolFailure(command, result.returncode, "")

    chosen = result.stdout.rstrip("\n")
    return chosen or None


class ProfileSelector:
    """Interactive AWS profile selection."""

    def __init__(
        self,
        config: FancyConfig,
        logger: Optional[FancyLogger] = None,
        timeout: float = SELECTION_TIMEOUT
    ) -> None:
        self.config = config
        self.logger = logger or NullLogger()
        self.timeout = timeout

    def list_profiles(self, aws_profiles: Iterable[str]) -> List[ProfileDisplayInfo]:
        return build_profile_display(aws_profiles, self.config)

    def select(self, aws_profiles: Iterable[str]) -> Optional[ProfileDisplayInfo]:
        """
        Show the selection list and return the chosen row.

        Returns:
            The chosen row, or None when nothing was selected

        Raises:
            SelectionTimeout: The operator did not choose in time
            ProfileSelectionError: A header line was chosen
        """
        rows = self.list_profiles(aws_profiles)
        configured = sum(1 for row in rows if row.is_configured)
        total = sum(1 for row in rows if not row.is_separator)
        self.logger.log_info(
            f"Found {configured} configured profiles out of {total} total AWS profiles"
        )

        chosen = fzf_select(
            [row.display_text for row in rows],
            prompt="Select AWS Profile: ",
            what="profile",
            timeout=self.timeout,
        )
        if chosen is None:
            return None

        row = lookup_profile(rows, chosen)
        if row is None:
            raise ProfileSelectionError(f"invalid profile selection: {chosen.strip()}")

        self.logger.log_info(
            f"Profile selected: {row.name} (configured: {row.is_configured})"
        )
        return row
