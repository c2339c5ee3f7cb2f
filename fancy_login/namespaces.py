#!/usr/bin/env python3
"""
Fancy Login - Namespace Resolver

Derives a Kubernetes namespace from an AWS profile name.
Profiles named CODE_ENV_DEVENG map to "<env>-<project>", where the project
name is looked up by CODE in the namespace table.
"""

import re
from dataclasses import dataclass
from typing import Dict, Tuple

DEVENG_PROFILE = re.compile(r'([A-Z]+)_([A-Z]+)_DEVENG')

NAMESPACE_PLACEHOLDER = "-"

REASON_SHAPE = "shape"
REASON_UNKNOWN_CODE = "unknown_code"


@dataclass(frozen=True)
class NamespaceResult:
    namespace: str = ""
    found: bool = False
    reason: str = ""

    def describe(self, profile: str) -> str:
        if self.found:
            return f"namespace {self.namespace}"
        if self.reason == REASON_UNKNOWN_CODE:
            return f"project code of {profile} not found in namespace config"
        return f"profile {profile} does not match DEVENG pattern"


def resolve_namespace(profile: str, project_codes: Dict[str, str]) -> NamespaceResult:
    """Derive the namespace for a profile, keeping the failure reason."""
    match = DEVENG_PROFILE.fullmatch(profile or "")
    if not match:
        return NamespaceResult(reason=REASON_SHAPE)

    code, environment = match.group(1), match.group(2)
    project = (project_codes or {}).get(code)
    if project is None:
        return NamespaceResult(reason=REASON_UNKNOWN_CODE)

    return NamespaceResult(namespace=f"{environment.lower()}-{project}", found=True)


def derive(profile: str, project_codes: Dict[str, str]) -> Tuple[str, bool]:
    """Return (namespace, found). Never raises."""
    result = resolve_namespace(profile, project_codes)
    return result.namespace, result.found
