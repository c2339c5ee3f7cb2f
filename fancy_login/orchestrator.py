#!/usr/bin/env python3
"""
Fancy Login - Login Orchestrator

Runs a login session end to end:
    select profile -> SSO session check/login -> resolve directive
    -> switch context -> ECR login -> summary -> optional k9s launch

Also exposes the pieces the CLI uses on their own: resolve_directive(),
run_wizard() and list_profiles_for_selection().
"""

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from .aws import AwsCli
from .config_store import ConfigStore, FancyConfig
from .display import FancyDisplay
from .errors import ExternalToolFailure, FancyLoginError, ProfileSelectionError
from .k8s import KubeCli
from .logger import FancyLogger
from .parsers import load_context_mappings, load_namespace_mappings
from .resolver import Directive, ResolutionEngine
from .selector import ProfileDisplayInfo, ProfileSelector
from .settings import Settings
from .wizard import ConfigWizard, Prompter, WizardMode, wizard_needed


@dataclass(frozen=True)
class ExportedProfile:
    """Shell snippet that exports AWS_PROFILE, and where the CLI should write it."""
    profile: str
    path: Path
    content: str
    # cmd.exe companion written next to the PowerShell snippet
    batch_path: Optional[Path] = None
    batch_content: str = ""


def render_profile_export(profile: str, path: Path, windows: bool = False) -> ExportedProfile:
    path = Path(path)
    if not windows:
        return ExportedProfile(profile=profile, path=path, content=f"export AWS_PROFILE={profile}\n")
    return ExportedProfile(
        profile=profile,
        path=path,
        content=f'$env:AWS_PROFILE="{profile}"\n',
        batch_path=Path(str(path).replace(".ps1", ".bat")),
        batch_content=f"set AWS_PROFILE={profile}\n",
    )


def write_profile_export(exported: ExportedProfile) -> None:
    exported.path.parent.mkdir(parents=True, exist_ok=True)
    exported.path.write_text(exported.content)
    if exported.batch_path is not None:
        exported.batch_path.write_text(exported.batch_content)


@dataclass
class LoginResult:
    profile: str
    directive: Directive
    account_id: str = ""
    ecr_result: str = ""


class LoginSession:
    """One interactive fancy-login run."""

    def __init__(
        self,
        settings: Settings,
        logger: Optional[FancyLogger] = None,
        display: Optional[FancyDisplay] = None,
        aws: Optional[AwsCli] = None,
        kube: Optional[KubeCli] = None,
        confirm: Optional[Callable[[str], bool]] = None
    ) -> None:
        self.settings = settings
        self.logger = logger or FancyLogger(settings.log_dir, settings.verbose or settings.debug)
        self.display = display or FancyDisplay(verbose=settings.verbose)
        self.store = ConfigStore(settings, self.logger)
        self.aws = aws or AwsCli(settings.aws_config_path(), self.logger, settings.verbose)
        self.kube = kube or KubeCli(settings.kube_config_path(), self.logger, settings.verbose)
        self.confirm = confirm or _confirm_on_terminal
        self._config: Optional[FancyConfig] = None

    @property
    def config(self) -> FancyConfig:
        if self._config is None:
            self._config = self.store.load()
        return self._config

    def engine(self, interactive: bool = True) -> ResolutionEngine:
        mappings_path = self.settings.contexts_config_path()
        mappings = load_context_mappings(mappings_path)
        self.logger.log_info(f"Loaded {len(mappings)} legacy context rules from {mappings_path}")

        return ResolutionEngine(
            self.config,
            legacy_mappings=mappings,
            namespace_table=load_namespace_mappings(self.settings.namespace_config),
            kube=self.kube if interactive else None,
            logger=self.logger,
            env_region=self.settings.aws_region,
        )

    # =========================================================================
    # Core API
    # =========================================================================

    def resolve_directive(self, profile: str, interactive: bool = False) -> Directive:
        """Resolve a profile. Non-interactive calls never run fzf or kubectl."""
        return self.engine(interactive=interactive).resolve(profile)

    def list_profiles_for_selection(self) -> List[ProfileDisplayInfo]:
        return ProfileSelector(self.config, self.logger).list_profiles(self.aws.profile_names())

    def run_wizard(self, mode: WizardMode = WizardMode.ASK, prompter: Optional[Prompter] = None) -> Path:
        wizard = ConfigWizard(
            self.store,
            discover_profiles=self.aws.list_profiles,
            discover_contexts=self.kube.list_contexts,
            prompter=prompter,
            mode=mode,
            logger=self.logger,
        )
        path = wizard.run()
        self._config = None
        return path

    def offer_wizard(self) -> Optional[Path]:
        """Offer the wizard until one run has been recorded."""
        if not wizard_needed(self.store):
            return None
        if not self.confirm("Configuration wizard has not been completed. Run it now? (y/N): "):
            return None
        return self.run_wizard(WizardMode.ASK)

    def export_profile(self, profile: str) -> ExportedProfile:
        return render_profile_export(
            profile,
            self.settings.profile_temp,
            windows=sys.platform.startswith("win"),
        )

    # =========================================================================
    # Login flow
    # =========================================================================

    def select_profile(self) -> Optional[str]:
        """Let the operator choose a profile. Returns None when nothing was chosen."""
        names = self.aws.profile_names()
        if not names:
            raise ProfileSelectionError(f"No AWS profiles found in {self.settings.aws_config_path()}")

        self.display.info("☁️ AWS Profile Selection")
        row = ProfileSelector(self.config, self.logger).select(names)
        if row is None:
            return None

        if not row.is_configured:
            self.display.warning(f"Profile '{row.name}' is not configured in fancy-config")
            if self.confirm("Would you like to configure this profile now? (y/N): "):
                self.display.info("Run 'fancy-login --config-add' to configure profiles")
                raise ProfileSelectionError("profile configuration needed")
            self.display.warning("Continuing with unconfigured profile...")
        return row.name

    def ensure_session(self, profile: str) -> None:
        """Reuse a valid SSO session or log in again."""
        self.logger.log_info(f"Checking AWS SSO session for profile {profile}...")
        if not self.settings.force_aws_login and self.aws.is_session_valid(profile):
            self.logger.log_info(f"AWS SSO session is still valid for {profile}.")
            return

        if not self.aws.is_sso_profile(profile):
            self.display.warning(
                f"Unable to authenticate with profile {profile}. This might not be an SSO profile."
            )
            if not self.confirm("Do you want to continue anyway? (y/n): "):
                raise FancyLoginError("User chose to exit due to authentication issues.")
            self.display.warning("Continuing with potentially invalid credentials...")
            return

        self.logger.log_info(f"Attempting SSO login for profile {profile}...")
        with self.display.spinner("🔑 AWS SSO login..."):
            self.aws.sso_login(profile)

        if not self.aws.is_session_valid(profile):
            raise FancyLoginError(f"AWS SSO login verification failed for {profile}.")
        self.logger.log_info(f"AWS SSO login successful for {profile}.")
        self.display.success(f"AWS SSO login successful for {profile}")

    def switch_context(self, directive: Directive) -> None:
        if not directive.context_resolved:
            return
        try:
            self.kube.use_context(directive.context)
        except ExternalToolFailure as e:
            self.display.warning(f"Failed to switch to context {directive.context}: {e}")
            return
        self.display.success(f"Switched to context {directive.context}")

    def ecr_login(self, directive: Directive, account_id: str) -> str:
        """Log in to ECR if the directive asks for it. Returns the summary text."""
        if not directive.ecr_login:
            return ""
        if not account_id:
            self.display.error(
                "Failed to retrieve AWS account ID. Your session may have expired or is not authenticated."
            )
            return "failed"

        region = directive.ecr_region or self.settings.aws_region or self.settings.default_region
        self.logger.log_info(f"ECR login: account {account_id}, region {region}")
        try:
            with self.display.spinner("🐳 Logging in to ECR..."):
                self.aws.ecr_login(directive.profile, account_id, region)
        except ExternalToolFailure as e:
            self.logger.log_error("ECR login failed", e)
            self.display.error(f"ECR login failed: {e}")
            return "failed"
        return "successful"

    def launch_k9s(self, directive: Directive) -> None:
        if not directive.should_launch_k9s:
            return
        if not directive.namespace_found:
            self.display.error(f"Unable to derive namespace from profile: {directive.profile}")
            return
        if not self.settings.use_k9s and not self.confirm("Do you want to open k9s? (y/n): "):
            return

        self.logger.log_info(f"Launching k9s in {directive.namespace}.")
        try:
            self.kube.launch_k9s(directive.namespace, directive.profile)
        except ExternalToolFailure as e:
            self.display.error(f"Failed to launch k9s: {e}")

    def run(self) -> Optional[LoginResult]:
        """Full interactive login. Returns None when no profile was chosen."""
        self.display.header("🦄 Fancy Login")
        profile = self.select_profile()
        if profile is None:
            self.display.warning("No profile selected.")
            return None

        write_profile_export(self.export_profile(profile))
        self.ensure_session(profile)

        directive = self.resolve_directive(profile, interactive=True)
        if directive.selection_error:
            self.display.warning(directive.selection_error)
        self.switch_context(directive)

        try:
            account_id = self.aws.get_account_id(profile)
        except ExternalToolFailure as e:
            self.logger.log_error("Account id lookup failed", e)
            account_id = ""

        result = LoginResult(
            profile=profile,
            directive=directive,
            account_id=account_id,
            ecr_result=self.ecr_login(directive, account_id),
        )
        self.display.summary(directive, account_id, result.ecr_result)
        self.launch_k9s(directive)
        self.logger.log_info("Script execution completed.")
        return result


def _confirm_on_terminal(question: str) -> bool:
    try:
        answer = input(question)
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")
