#!/usr/bin/env python3
"""
Fancy Login - Configuration Parsers

Readers for the files fancy-login discovers but does not own:
- AWS CLI config (~/.aws/config) profiles
- kubeconfig contexts
- legacy `.fancy-contexts.conf` pattern rules
- legacy `.fancy-namespaces.conf` project codes
"""

import configparser
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Union

import yaml

from .errors import ConfigParseError

PROFILE_SECTION = re.compile(r'profile\s+(.+)')


@dataclass
class AwsProfile:
    """A profile from the AWS CLI config."""
    name: str
    account_id: str = ""
    region: str = ""
    sso_start_url: str = ""
    sso_region: str = ""
    sso_role: str = ""
    is_sso: bool = False


@dataclass
class KubeContext:
    """A context from a kubeconfig file."""
    name: str
    cluster: str = ""
    namespace: str = ""
    user: str = ""


@dataclass(frozen=True)
class ContextMapping:
    """Legacy wildcard rule mapping profile names to a context."""
    pattern: str
    context: str


def parse_aws_profiles(path: Union[str, Path]) -> List[AwsProfile]:
    """
    Parse profiles from an AWS CLI config file.

    Recognizes `[default]` and `[profile NAME]` sections; other sections
    (sso-session, services) are skipped. Profiles are returned in file order.

    Raises:
        OSError: File cannot be read
        ConfigParseError: File is not valid INI or not UTF-8 text
    """
    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        with open(path, "r", encoding="utf-8") as f:
            parser.read_file(f)
    except configparser.Error as e:
        raise ConfigParseError(path, str(e))
    except UnicodeDecodeError as e:
        raise ConfigParseError(path, _not_utf8(e))

    profiles = []
    for section in parser.sections():
        if section == "default":
            name = "default"
        else:
            match = PROFILE_SECTION.fullmatch(section.strip())
            if not match:
                continue
            name = match.group(1).strip()

        values = parser[section]
        profile = AwsProfile(
            name=name,
            account_id=values.get("sso_account_id", ""),
            region=values.get("region", ""),
            sso_start_url=values.get("sso_start_url", ""),
            sso_region=values.get("sso_region", ""),
            sso_role=values.get("sso_role_name", ""),
        )
        profile.is_sso = any(key.startswith("sso_") for key in values.keys())
        profiles.append(profile)

    return profiles


def parse_kube_contexts(path: Union[str, Path]) -> List[KubeContext]:
    """
    Parse contexts from a kubeconfig file.

    Raises:
        OSError: File cannot be read
        ConfigParseError: File is not valid YAML or has no usable structure
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigParseError(path, str(e))
    except UnicodeDecodeError as e:
        raise ConfigParseError(path, _not_utf8(e))

    if data is None:
        return []
    if not isinstance(data, dict):
        raise ConfigParseError(path, "top level is not a mapping")

    entries = data.get("contexts")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ConfigParseError(path, "contexts is not a list")

    contexts = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("name"):
            continue
        ctx = entry.get("context")
        if ctx is None:
            ctx = {}
        elif not isinstance(ctx, dict):
            # Malformed entries are skipped like nameless ones
            continue
        contexts.append(KubeContext(
            name=str(entry["name"]),
            cluster=str(ctx.get("cluster") or ""),
            namespace=str(ctx.get("namespace") or ""),
            user=str(ctx.get("user") or ""),
        ))
    return contexts


def _not_utf8(error: UnicodeDecodeError) -> str:
    return f"not valid UTF-8 text ({error.reason})"


def _read_key_value_lines(path: Union[str, Path]):
    try:
        with open(path, "r", encoding="utf-8") as f:
            lines = f.readlines()
    except UnicodeDecodeError as e:
        raise ConfigParseError(path, _not_utf8(e))

    for raw in lines:
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        yield key.strip(), value.strip()


def parse_context_file(path: Union[str, Path]) -> List[ContextMapping]:
    """Parse legacy `pattern = context` rules, preserving file order."""
    return [
        ContextMapping(pattern=pattern, context=context)
        for pattern, context in _read_key_value_lines(path)
    ]


def parse_namespace_file(path: Union[str, Path]) -> Dict[str, str]:
    """Parse legacy `CODE=namespace-fragment` lines. Later lines win."""
    return dict(_read_key_value_lines(path))


def load_context_mappings(path: Union[str, Path]) -> List[ContextMapping]:
    """Load legacy context rules; a missing file means no rules."""
    try:
        return parse_context_file(path)
    except FileNotFoundError:
        return []


def load_namespace_mappings(path: Union[str, Path]) -> Dict[str, str]:
    """Load the project code table; a missing file means an empty table."""
    try:
        return parse_namespace_file(path)
    except FileNotFoundError:
        return {}
