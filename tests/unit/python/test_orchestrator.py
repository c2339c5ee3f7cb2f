#!/usr/bin/env python3
"""
Unit tests for fancy_login/orchestrator.py - LoginSession

AWS and Kubernetes collaborators are replaced with fakes; fzf is patched at
the subprocess level.
"""

import subprocess
import sys
import pytest
from pathlib import Path
from unittest.mock import MagicMock, patch

sys.path.insert(0, '.')
from fancy_login.config_store import ConfigStore, FancyConfig, ProfileConfig
from fancy_login.errors import ExternalToolFailure, FancyLoginError
from fancy_login.logger import NullLogger
from fancy_login.orchestrator import LoginSession, render_profile_export, write_profile_export
from fancy_login.resolver import ContextSource, Directive
from fancy_login.settings import Settings


class FakeAws:
    def __init__(self, names=None, sso=True, valid=True, account_id="111111111111"):
        self.names = names or ["ACME_DEV_DEVENG", "sandbox"]
        self.sso = sso
        self.valid = valid
        self.account_id = account_id
        self.sso_logins = []
        self.ecr_logins = []
        self.ecr_error = None

    def profile_names(self):
        return list(self.names)

    def list_profiles(self):
        return []

    def is_sso_profile(self, profile):
        return self.sso

    def is_session_valid(self, profile):
        return self.valid

    def sso_login(self, profile):
        self.sso_logins.append(profile)
        self.valid = True

    def get_account_id(self, profile):
        if not self.account_id:
            raise ExternalToolFailure(["aws"], 255, "expired")
        return self.account_id

    def ecr_login(self, profile, account_id, region):
        if self.ecr_error:
            raise self.ecr_error
        self.ecr_logins.append((profile, account_id, region))


class FakeKube:
    def __init__(self, selected=None, current=None):
        self.selected = selected
        self.current = current
        self.used = []
        self.k9s = []
        self.select_calls = 0

    def list_contexts(self):
        return []

    def select_context(self):
        self.select_calls += 1
        return self.selected

    def current_context(self):
        return self.current

    def use_context(self, context):
        self.used.append(context)

    def launch_k9s(self, namespace, profile):
        self.k9s.append((namespace, profile))


@pytest.fixture
def settings(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    bin_dir = home / "bin"
    bin_dir.mkdir(parents=True)
    (bin_dir / ".fancy-contexts.conf").write_text("*_DEV_* = dev-cluster\n")
    (bin_dir / ".fancy-namespaces.conf").write_text("ACME=webshop\n")
    return Settings(
        home_dir=home,
        bin_dir=bin_dir,
        aws_dir=home / ".aws",
        kube_dir=home / ".kube",
        log_dir=home / "logs",
        namespace_config=bin_dir / ".fancy-namespaces.conf",
        profile_temp=tmp_path / "aws_profile.sh",
    )


def save_profiles(settings, **profiles):
    config = FancyConfig.default()
    for name, values in profiles.items():
        config.profile_configs[name] = ProfileConfig(name=name, **values)
    config.settings.config_wizard_run = True
    ConfigStore(settings).save(config)


def make_session(settings, aws=None, kube=None, confirm=True):
    return LoginSession(
        settings,
        logger=NullLogger(),
        display=MagicMock(),
        aws=aws or FakeAws(),
        kube=kube or FakeKube(),
        confirm=lambda question: confirm,
    )


def fzf_returns(line):
    result = subprocess.CompletedProcess(args=["fzf"], returncode=0, stdout=line + "\n")
    return patch("fancy_login.selector.subprocess.run", return_value=result)


class TestResolveDirective:
    """Non-interactive resolution."""

    def test_configured_profile(self, settings):
        save_profiles(settings, ACME_DEV_DEVENG={"k8s_context": "mine", "ecr_login": True})
        directive = make_session(settings).resolve_directive("ACME_DEV_DEVENG")
        assert directive.context == "mine"
        assert directive.ecr_region == "eu-central-1"
        assert directive.namespace == "dev-webshop"

    def test_legacy_rules_from_bin_dir(self, settings):
        directive = make_session(settings).resolve_directive("ACME_DEV_ADMIN")
        assert directive.source is ContextSource.LEGACY
        assert directive.context == "dev-cluster"

    def test_ecr_region_from_aws_region(self, settings):
        save_profiles(settings, ACME_DEV_DEVENG={"ecr_login": True})
        session = make_session(settings.with_overrides(aws_region="us-east-2"))
        assert session.resolve_directive("ACME_DEV_DEVENG").ecr_region == "us-east-2"

    def test_never_prompts(self, settings):
        kube = FakeKube(selected="picked")
        directive = make_session(settings, kube=kube).resolve_directive("sandbox")
        assert directive.source is ContextSource.SELECTION_REQUIRED
        assert kube.select_calls == 0


class TestEnsureSession:
    """SSO session handling."""

    def test_valid_session_reused(self, settings):
        aws = FakeAws(valid=True)
        make_session(settings, aws=aws).ensure_session("sandbox")
        assert aws.sso_logins == []

    def test_forced_login(self, settings):
        aws = FakeAws(valid=True)
        forced = settings.with_overrides(force_aws_login=True)
        make_session(forced, aws=aws).ensure_session("sandbox")
        assert aws.sso_logins == ["sandbox"]

    def test_expired_session_logs_in(self, settings):
        aws = FakeAws(valid=False)
        make_session(settings, aws=aws).ensure_session("sandbox")
        assert aws.sso_logins == ["sandbox"]

    def test_non_sso_declined(self, settings):
        aws = FakeAws(valid=False, sso=False)
        with pytest.raises(FancyLoginError):
            make_session(settings, aws=aws, confirm=False).ensure_session("sandbox")


class TestEcrLogin:
    """ECR login step."""

    def test_not_requested(self, settings):
        directive = Directive(profile="a")
        assert make_session(settings).ecr_login(directive, "1") == ""

    def test_missing_account(self, settings):
        directive = Directive(profile="a", ecr_login=True, ecr_region="eu-west-1")
        assert make_session(settings).ecr_login(directive, "") == "failed"

    def test_success(self, settings):
        aws = FakeAws()
        directive = Directive(profile="a", ecr_login=True, ecr_region="eu-west-1")
        assert make_session(settings, aws=aws).ecr_login(directive, "1") == "successful"
        assert aws.ecr_logins == [("a", "1", "eu-west-1")]

    def test_region_falls_back_to_settings(self, settings):
        aws = FakeAws()
        directive = Directive(profile="a", ecr_login=True, ecr_region="")
        make_session(settings, aws=aws).ecr_login(directive, "1")
        assert aws.ecr_logins == [("a", "1", "eu-central-1")]

    def test_region_falls_back_to_aws_region(self, settings):
        aws = FakeAws()
        directive = Directive(profile="a", ecr_login=True, ecr_region="")
        make_session(settings.with_overrides(aws_region="us-east-2"), aws=aws).ecr_login(directive, "1")
        assert aws.ecr_logins == [("a", "1", "us-east-2")]

    def test_failure(self, settings):
        aws = FakeAws()
        aws.ecr_error = ExternalToolFailure(["docker"], 1, "denied")
        directive = Directive(profile="a", ecr_login=True, ecr_region="eu-west-1")
        assert make_session(settings, aws=aws).ecr_login(directive, "1") == "failed"


class TestLaunchK9s:
    """k9s launch gating."""

    def directive(self, **changes):
        values = dict(
            profile="ACME_DEV_DEVENG",
            context="dev",
            source=ContextSource.CONFIGURED,
            k9s_auto_launch=True,
            namespace="dev-webshop",
            namespace_found=True,
        )
        values.update(changes)
        return Directive(**values)

    def test_launches_when_confirmed(self, settings):
        kube = FakeKube()
        make_session(settings, kube=kube).launch_k9s(self.directive())
        assert kube.k9s == [("dev-webshop", "ACME_DEV_DEVENG")]

    def test_declined(self, settings):
        kube = FakeKube()
        make_session(settings, kube=kube, confirm=False).launch_k9s(self.directive())
        assert kube.k9s == []

    def test_k9s_flag_skips_prompt(self, settings):
        kube = FakeKube()
        session = make_session(settings.with_overrides(use_k9s=True), kube=kube, confirm=False)
        session.launch_k9s(self.directive())
        assert kube.k9s == [("dev-webshop", "ACME_DEV_DEVENG")]

    def test_no_namespace(self, settings):
        kube = FakeKube()
        session = make_session(settings, kube=kube)
        session.launch_k9s(self.directive(namespace="", namespace_found=False))
        assert kube.k9s == []
        session.display.error.assert_called_once()

    def test_not_for_interactive_context(self, settings):
        kube = FakeKube()
        make_session(settings, kube=kube).launch_k9s(self.directive(source=ContextSource.INTERACTIVE))
        assert kube.k9s == []


class TestRun:
    """Full login flow."""

    def test_configured_profile(self, settings):
        save_profiles(settings, ACME_DEV_DEVENG={
            "k8s_context": "dev",
            "ecr_login": True,
            "ecr_region": "eu-west-1",
            "k9s_auto_launch": True,
        })
        aws = FakeAws()
        kube = FakeKube()
        session = make_session(settings, aws=aws, kube=kube)

        chosen = [r for r in session.list_profiles_for_selection() if r.name == "ACME_DEV_DEVENG"][0]
        with fzf_returns(chosen.display_text):
            result = session.run()

        assert result.profile == "ACME_DEV_DEVENG"
        assert result.ecr_result == "successful"
        assert kube.used == ["dev"]
        assert kube.k9s == [("dev-webshop", "ACME_DEV_DEVENG")]
        assert settings.profile_temp.read_text() == "export AWS_PROFILE=ACME_DEV_DEVENG\n"

    def test_unconfigured_profile_uses_interactive_context(self, settings):
        kube = FakeKube(selected="picked")
        session = make_session(settings, kube=kube, confirm=False)
        with fzf_returns("sandbox"):
            result = session.run()

        assert result.directive.source is ContextSource.INTERACTIVE
        assert kube.used == ["picked"]
        assert result.ecr_result == ""

    def test_nothing_selected(self, settings):
        result = subprocess.CompletedProcess(args=["fzf"], returncode=130, stdout="")
        with patch("fancy_login.selector.subprocess.run", return_value=result):
            assert make_session(settings).run() is None
        assert not settings.profile_temp.exists()


class TestOfferWizard:
    """First-run wizard offer."""

    def test_declined(self, settings):
        assert make_session(settings, confirm=False).offer_wizard() is None

    def test_not_offered_after_run(self, settings):
        save_profiles(settings)
        session = make_session(settings)
        session.confirm = MagicMock()
        assert session.offer_wizard() is None
        session.confirm.assert_not_called()


class TestProfileExport:
    """Tests for render_profile_export."""

    def test_posix(self):
        exported = render_profile_export("sandbox", Path("/tmp/aws_profile.sh"))
        assert exported.content == "export AWS_PROFILE=sandbox\n"
        assert exported.batch_path is None

    def test_windows(self):
        exported = render_profile_export("sandbox", Path("aws_profile.ps1"), windows=True)
        assert exported.content == '$env:AWS_PROFILE="sandbox"\n'
        assert exported.batch_path == Path("aws_profile.bat")
        assert exported.batch_content == "set AWS_PROFILE=sandbox\n"

    def test_windows_writes_both_files(self, tmp_path):
        exported = render_profile_export("sandbox", tmp_path / "aws_profile.ps1", windows=True)
        write_profile_export(exported)
        assert (tmp_path / "aws_profile.ps1").read_text() == '$env:AWS_PROFILE="sandbox"\n'
        assert (tmp_path / "aws_profile.bat").read_text() == "set AWS_PROFILE=sandbox\n"
