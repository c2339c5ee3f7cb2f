#!/usr/bin/env python3
"""
Fancy Login - Configuration Wizard

Interactive setup of .fancy-config.yaml, run as a fixed sequence of stages:

    DISCOVER_EXISTING -> SHOW_DISCOVERED -> CONFIGURE_PROFILES
        -> CONFIGURE_GLOBALS -> PERSIST -> DONE

Questions go through a Prompter (ask one question, get one answer), so the
merge logic runs the same against a terminal or a scripted answer list.
Nothing is written until PERSIST, and only after the operator confirms.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .config_store import ConfigStore, FancyConfig, ProfileConfig
from .errors import ConfigParseError, WizardAborted
from .logger import FancyLogger, NullLogger
from .parsers import AwsProfile, KubeContext
from .settings import DEFAULT_REGION


class WizardStage(Enum):
    DISCOVER_EXISTING = 1
    SHOW_DISCOVERED = 2
    CONFIGURE_PROFILES = 3
    CONFIGURE_GLOBALS = 4
    PERSIST = 5
    DONE = 6


NEXT_STAGE = {
    WizardStage.DISCOVER_EXISTING: WizardStage.SHOW_DISCOVERED,
    WizardStage.SHOW_DISCOVERED: WizardStage.CONFIGURE_PROFILES,
    WizardStage.CONFIGURE_PROFILES: WizardStage.CONFIGURE_GLOBALS,
    WizardStage.CONFIGURE_GLOBALS: WizardStage.PERSIST,
    WizardStage.PERSIST: WizardStage.DONE,
}


class WizardMode(Enum):
    ASK = "ask"
    OVERRIDE_ALL = "override_all"
    ADD_NEW_ONLY = "add_new_only"


class Prompter:
    """Terminal prompter: one question, one trimmed answer."""

    def __init__(self, output: Callable[[str], None] = print) -> None:
        self._output = output

    def say(self, text: str = "") -> None:
        self._output(text)

    def ask(self, question: str, default: str = "") -> str:
        prompt = f"{question} [{default}]: " if default else f"{question}: "
        try:
            return input(prompt).strip()
        except EOFError:
            return ""


def _is_yes(answer: str, default: bool) -> bool:
    if not answer:
        return default
    first = answer.strip().lower()[:1]
    if default:
        return first != "n"
    return first == "y"


class ConfigWizard:
    """Stateful configuration wizard."""

    def __init__(
        self,
        store: ConfigStore,
        discover_profiles: Callable[[], List[AwsProfile]],
        discover_contexts: Callable[[], List[KubeContext]],
        prompter: Optional[Prompter] = None,
        mode: WizardMode = WizardMode.ASK,
        logger: Optional[FancyLogger] = None
    ) -> None:
        self.store = store
        self.discover_profiles = discover_profiles
        self.discover_contexts = discover_contexts
        self.prompter = prompter or Prompter()
        self.mode = mode
        self.logger = logger or NullLogger()

        self.stage = WizardStage.DISCOVER_EXISTING
        self.config = FancyConfig.default(store.settings.default_region)
        self.add_new_only = False
        self.aws_profiles: List[AwsProfile] = []
        self.k8s_contexts: List[KubeContext] = []
        self.configured: List[str] = []
        self.saved_path: Optional[Path] = None

        self._handlers: Dict[WizardStage, Callable[[], None]] = {
            WizardStage.DISCOVER_EXISTING: self._discover_existing,
            WizardStage.SHOW_DISCOVERED: self._show_discovered,
            WizardStage.CONFIGURE_PROFILES: self._configure_profiles,
            WizardStage.CONFIGURE_GLOBALS: self._configure_globals,
            WizardStage.PERSIST: self._persist,
        }

    def run(self) -> Path:
        """
        Run every remaining stage.

        Returns:
            Path the configuration was saved to

        Raises:
            ConfigParseError: Existing configuration is malformed
            WizardAborted: Operator declined to save
        """
        self.prompter.say("🎯 Fancy Login Configuration Wizard")
        self.prompter.say("=" * 40)
        self.logger.log_wizard(f"Wizard started (mode: {self.mode.value})")

        while self.stage is not WizardStage.DONE:
            self.logger.log_wizard(f"Stage {self.stage.name}")
            self._handlers[self.stage]()
            self.stage = NEXT_STAGE[self.stage]

        self.prompter.say("✅ Configuration wizard completed successfully!")
        self.prompter.say(f"Configuration saved to: {self.saved_path}")
        return self.saved_path

    # =========================================================================
    # Helpers
    # =========================================================================

    def _ask(self, question: str, default: str = "") -> str:
        return self.prompter.ask(question, default) or default

    def _ask_yes_no(self, question: str, default: bool) -> bool:
        hint = "Y/n" if default else "y/N"
        return _is_yes(self.prompter.ask(f"{question} [{hint}]", ""), default)

    # =========================================================================
    # Stages
    # =========================================================================

    def _discover_existing(self) -> None:
        existing = self.store.load()

        if existing.profile_configs:
            self.prompter.say(
                f"📋 Found existing configuration with {len(existing.profile_configs)} profiles"
            )
            override = self._choose_override()
            if override:
                self.config = FancyConfig.default(self.store.settings.default_region)
                self.add_new_only = False
                self.logger.log_wizard("Overriding existing configuration")
            else:
                self.config = existing
                self.add_new_only = True
                self.logger.log_wizard("Adding new profiles only")
        else:
            self.config = existing
            self.add_new_only = False

        self.prompter.say("🔍 Discovering existing configurations...")
        self.aws_profiles = self._discover("AWS profiles", self.discover_profiles)
        self.k8s_contexts = self._discover("Kubernetes contexts", self.discover_contexts)

    def _choose_override(self) -> bool:
        if self.mode is WizardMode.ADD_NEW_ONLY:
            return False

        if self.mode is WizardMode.ASK:
            self.prompter.say("Configuration mode:")
            self.prompter.say("  1. Override all (reconfigure all profiles)")
            self.prompter.say("  2. Add new profiles only (keep existing, add new ones)")
            if self._ask("Choice", "2") != "1":
                return False

        self.prompter.say("⚠️  This will replace your existing configuration!")
        return self._ask_yes_no("Are you sure?", False)

    def _discover(self, what: str, source: Callable[[], list]) -> list:
        try:
            found = list(source())
        except (OSError, ConfigParseError) as e:
            self.prompter.say(f"⚠️  Warning: Could not read {what}: {e}")
            self.logger.log_warning(f"Discovery of {what} failed: {e}")
            return []
        self.prompter.say(f"✅ Found {len(found)} {what}")
        return found

    def _show_discovered(self) -> None:
        self.prompter.say("📋 Discovered Configurations:")

        if self.aws_profiles:
            self.prompter.say("AWS Profiles:")
            for i, profile in enumerate(self.aws_profiles, 1):
                kind = "SSO" if profile.is_sso else "Standard"
                account = f"Account: {profile.account_id}" if profile.account_id else "Unknown Account"
                status = " [Configured]" if self.config.has_profile(profile.name) else ""
                self.prompter.say(f"  {i}. {profile.name} ({kind}, {account}){status}")

        if self.k8s_contexts:
            self.prompter.say("Kubernetes Contexts:")
            for i, ctx in enumerate(self.k8s_contexts, 1):
                namespace = ctx.namespace or "default"
                self.prompter.say(
                    f"  {i}. {ctx.name} (Cluster: {ctx.cluster}, Namespace: {namespace})"
                )

    def _candidates(self) -> List[AwsProfile]:
        if not self.add_new_only:
            return list(self.aws_profiles)

        new = [p for p in self.aws_profiles if not self.config.has_profile(p.name)]
        skipped = len(self.aws_profiles) - len(new)
        if skipped:
            self.prompter.say(f"📋 Skipping {skipped} existing profiles")
        return new

    def _configure_profiles(self) -> None:
        self.prompter.say("🔗 Configuring AWS Profiles")

        if not self.aws_profiles:
            self.prompter.say("⚠️  No AWS profiles found. You can configure profiles manually later.")
            return

        candidates = self._candidates()
        if not candidates:
            self.prompter.say("✅ No new profiles found. All profiles are already configured.")
            return

        for i, profile in enumerate(candidates, 1):
            self.prompter.say(f"📝 Configuring Profile {i}/{len(candidates)}: {profile.name}")
            if profile.account_id:
                self.prompter.say(f"Account ID: {profile.account_id}")
            if profile.region:
                self.prompter.say(f"Region: {profile.region}")

            if not self._ask_yes_no("Configure this profile?", True):
                self.prompter.say("Skipping profile.")
                continue

            self.config.profile_configs[profile.name] = self._profile_config(profile)
            self.configured.append(profile.name)
            self.logger.log_wizard(f"Profile {profile.name} configured")
            self.prompter.say(f"✅ Profile {profile.name} configured")

    def _profile_config(self, profile: AwsProfile) -> ProfileConfig:
        config = ProfileConfig(name=profile.name, account_id=profile.account_id)

        config.ecr_login = self._ask_yes_no(f"Enable ECR login for profile {profile.name}?", True)
        if config.ecr_login:
            config.ecr_region = self._ask(
                f"ECR region for {profile.name}",
                profile.region or DEFAULT_REGION,
            )

        if self.k8s_contexts:
            self.prompter.say(f"Select Kubernetes context for profile {profile.name}:")
            for i, ctx in enumerate(self.k8s_contexts, 1):
                self.prompter.say(f"  {i}. {ctx.name}")
            self.prompter.say("  0. None")
            config.k8s_context = self._context_choice(self._ask("Choice", "0"))

        if config.k8s_context:
            config.k9s_auto_launch = self._ask_yes_no(
                f"Auto-launch K9s for profile {profile.name}?", False
            )
        return config

    def _context_choice(self, answer: str) -> str:
        try:
            index = int(answer)
        except ValueError:
            return ""
        if 1 <= index <= len(self.k8s_contexts):
            return self.k8s_contexts[index - 1].name
        return ""

    def _configure_globals(self) -> None:
        self.prompter.say("⚙️  Global Settings")
        region = self.prompter.ask("Default AWS region", self.config.settings.default_region)
        if region:
            self.config.settings.default_region = region
        self.config.settings.config_wizard_run = True

    def _persist(self) -> None:
        self.prompter.say("💾 Saving Configuration")
        path = self.store.path()
        self.prompter.say(f"Save configuration to: {path}")
        if not self._ask_yes_no("Proceed?", True):
            self.logger.log_wizard("Save declined, nothing written")
            raise WizardAborted("configuration save cancelled")

        self.saved_path = self.store.save(self.config)
        self.logger.log_wizard(f"Saved {len(self.config.profile_configs)} profiles to {self.saved_path}")


def wizard_needed(store: ConfigStore) -> bool:
    """True until a wizard run has been recorded in the stored document."""
    return not store.load().settings.config_wizard_run
