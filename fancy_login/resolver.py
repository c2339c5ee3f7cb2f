#!/usr/bin/env python3
"""
Fancy Login - Resolution Engine

Turns an AWS profile name into a Directive: which Kubernetes context to use,
whether to log in to ECR and where, whether k9s may auto-launch, and the
derived namespace.

Context precedence (first applicable rule wins):
    1. Profile configured with a context     -> CONFIGURED
    2. Profile configured without a context  -> SKIPPED
    3. Unconfigured, legacy pattern matches  -> LEGACY
    4. Otherwise interactive selection       -> INTERACTIVE, then the
       current context (CURRENT), then NONE. Without a Kubernetes
       collaborator the engine stops at SELECTION_REQUIRED.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from . import pattern_matcher
from .config_store import FancyConfig
from .errors import ExternalToolFailure, SelectionTimeout
from .logger import FancyLogger, NullLogger
from .namespaces import NAMESPACE_PLACEHOLDER, resolve_namespace
from .parsers import ContextMapping


class ContextSource(Enum):
    CONFIGURED = "configured"
    SKIPPED = "skipped"
    LEGACY = "legacy"
    INTERACTIVE = "interactive"
    CURRENT = "current"
    NONE = "none"
    SELECTION_REQUIRED = "selection_required"


RESOLVED_SOURCES = (
    ContextSource.CONFIGURED,
    ContextSource.LEGACY,
    ContextSource.INTERACTIVE,
    ContextSource.CURRENT,
)

# k9s auto-launch is only honoured for contexts that came from configuration
K9S_SOURCES = (ContextSource.CONFIGURED, ContextSource.LEGACY)

SKIP_REASONS = {
    ContextSource.SKIPPED: "not configured for this profile",
    ContextSource.NONE: "none selected",
    ContextSource.SELECTION_REQUIRED: "selection required",
}


@dataclass
class Directive:
    """Everything a login session should do for one profile."""
    profile: str
    context: Optional[str] = None
    source: ContextSource = ContextSource.SELECTION_REQUIRED
    ecr_login: bool = False
    ecr_region: str = ""
    k9s_auto_launch: bool = False
    namespace: str = ""
    namespace_found: bool = False
    matched_pattern: str = ""
    selection_error: str = ""

    @property
    def context_resolved(self) -> bool:
        return self.source in RESOLVED_SOURCES and bool(self.context)

    @property
    def should_launch_k9s(self) -> bool:
        return (
            self.k9s_auto_launch
            and self.source in K9S_SOURCES
            and bool(self.context)
        )

    @property
    def skip_reason(self) -> Optional[str]:
        return SKIP_REASONS.get(self.source)

    @property
    def namespace_or_placeholder(self) -> str:
        return self.namespace if self.namespace_found else NAMESPACE_PLACEHOLDER

    def context_summary(self) -> str:
        """One-line description of the context decision."""
        if not self.context_resolved:
            return f"({self.skip_reason})"
        if self.namespace_found:
            return f"{self.context} (ns: {self.namespace})"
        return self.context


class ResolutionEngine:
    """Resolves profiles against the config document and legacy rules."""

    def __init__(
        self,
        config: FancyConfig,
        legacy_mappings: Optional[List[ContextMapping]] = None,
        namespace_table: Optional[Dict[str, str]] = None,
        kube=None,
        logger: Optional[FancyLogger] = None,
        env_region: str = ""
    ) -> None:
        """
        Args:
            config: Loaded configuration document
            legacy_mappings: Ordered wildcard rules used for unconfigured profiles
            namespace_table: Project code to namespace fragment table
            kube: Optional collaborator with select_context() and current_context()
            logger: Event logger
            env_region: AWS_REGION, used for ECR before the default region
        """
        self.config = config
        self.legacy_mappings = list(legacy_mappings or [])
        self.namespace_table = dict(namespace_table or {})
        self.kube = kube
        self.logger = logger or NullLogger()
        self.env_region = env_region

    def resolve(self, profile: str) -> Directive:
        directive = Directive(profile=profile)

        self._resolve_context(directive)
        self._resolve_ecr(directive)

        profile_config = self.config.get_profile_config(profile)
        directive.k9s_auto_launch = bool(profile_config and profile_config.k9s_auto_launch)

        namespace = resolve_namespace(profile, self.namespace_table)
        directive.namespace = namespace.namespace
        directive.namespace_found = namespace.found
        self.logger.log_resolution(namespace.describe(profile))

        return directive

    # =========================================================================
    # Context
    # =========================================================================

    def _resolve_context(self, directive: Directive) -> None:
        profile = directive.profile
        profile_config = self.config.get_profile_config(profile)

        if profile_config is not None:
            if profile_config.k8s_context:
                directive.context = profile_config.k8s_context
                directive.source = ContextSource.CONFIGURED
                self.logger.log_resolution(
                    f"Using configured context: {directive.context}"
                )
            else:
                directive.source = ContextSource.SKIPPED
                self.logger.log_resolution(
                    f"Profile {profile} has no Kubernetes context configured, "
                    "skipping context selection"
                )
            return

        mapping = pattern_matcher.first_match(profile, self.legacy_mappings)
        if mapping is not None:
            directive.context = mapping.context
            directive.source = ContextSource.LEGACY
            directive.matched_pattern = mapping.pattern
            self.logger.log_resolution(
                f"Matched pattern: {mapping.pattern}, using context: {mapping.context}"
            )
            return

        if self.kube is None:
            directive.source = ContextSource.SELECTION_REQUIRED
            self.logger.log_resolution(f"No rule for {profile}, selection required")
            return

        self._select_interactively(directive)

    def _select_interactively(self, directive: Directive) -> None:
        try:
            selected = self.kube.select_context()
        except SelectionTimeout as e:
            directive.selection_error = str(e)
            selected = None
        except ExternalToolFailure as e:
            directive.selection_error = str(e)
            selected = None

        if selected:
            directive.context = selected
            directive.source = ContextSource.INTERACTIVE
            self.logger.log_resolution(f"K8s context selected: {selected}")
            return

        self.logger.log_resolution(
            "No context selected or error occurred"
            + (f": {directive.selection_error}" if directive.selection_error else "")
        )
        try:
            current = self.kube.current_context()
        except ExternalToolFailure as e:
            self.logger.log_resolution(f"Current context unavailable: {e}")
            current = None

        if current:
            directive.context = current
            directive.source = ContextSource.CURRENT
        else:
            directive.source = ContextSource.NONE

    # =========================================================================
    # ECR
    # =========================================================================

    def _resolve_ecr(self, directive: Directive) -> None:
        directive.ecr_login = self.config.should_perform_ecr_login(directive.profile)
        if not directive.ecr_login:
            return
        config = self.config.get_profile_config(directive.profile)
        if self.env_region and not (config and config.ecr_region):
            directive.ecr_region = self.env_region
        else:
            directive.ecr_region = self.config.ecr_region_for(directive.profile)
