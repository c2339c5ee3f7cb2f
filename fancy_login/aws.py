#!/usr/bin/env python3
"""
Fancy Login - AWS CLI Adapter

Wraps the `aws` and `docker` commands used during login:
- STS identity checks (session validity, account id)
- SSO login
- ECR login (get-login-password piped into docker login)
"""

import os
import subprocess
from typing import List, Optional

from .errors import ExternalToolFailure
from .logger import FancyLogger, NullLogger
from .parsers import AwsProfile, parse_aws_profiles


def ecr_registry(account_id: str, region: str) -> str:
    return f"{account_id}.dkr.ecr.{region}.amazonaws.com"


class AwsCli:
    """AWS collaborator backed by the aws CLI."""

    def __init__(
        self,
        config_path,
        logger: Optional[FancyLogger] = None,
        verbose: bool = False
    ) -> None:
        self.config_path = config_path
        self.logger = logger or NullLogger()
        self.verbose = verbose

    def _run(self, command: List[str], capture: bool = True) -> str:
        """Run a command, returning stdout. Raises ExternalToolFailure on error."""
        self.logger.log_external(" ".join(command))
        try:
            if capture:
                result = subprocess.run(
                    command,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    text=True,
                )
            else:
                result = subprocess.run(command)
        except OSError as e:
            raise ExternalToolFailure(command, None, str(e))

        if result.returncode != 0:
            raise ExternalToolFailure(
                command,
                result.returncode,
                result.stderr if capture else "",
            )
        return (result.stdout or "").strip() if capture else ""

    # --- Profiles ---

    def list_profiles(self) -> List[AwsProfile]:
        return parse_aws_profiles(self.config_path)

    def profile_names(self) -> List[str]:
        return [profile.name for profile in self.list_profiles()]

    def is_sso_profile(self, profile: str) -> bool:
        for candidate in self.list_profiles():
            if candidate.name == profile:
                return candidate.is_sso
        return False

    # --- Identity ---

    def get_account_id(self, profile: str) -> str:
        return self._run([
            "aws", "sts", "get-caller-identity",
            "--profile", profile,
            "--query", "Account",
            "--output", "text",
        ])

    def is_session_valid(self, profile: str) -> bool:
        try:
            self.get_account_id(profile)
        except ExternalToolFailure:
            return False
        return True

    def sso_login(self, profile: str) -> None:
        """Run `aws sso login`; output goes to the terminal in verbose mode."""
        command = ["aws", "sso", "login", "--profile", profile]
        self._run(command, capture=not self.verbose)

    # --- ECR ---

    def ecr_login(self, profile: str, account_id: str, region: str) -> None:
        """
        Log docker in to the account's ECR registry.

        Raises:
            ExternalToolFailure: Either side of the pipe failed
        """
        password_cmd = [
            "aws", "ecr", "get-login-password",
            "--region", region,
            "--profile", profile,
        ]
        login_cmd = [
            "docker", "login",
            "--username", "AWS",
            "--password-stdin",
            ecr_registry(account_id, region),
        ]
        self.logger.log_external(" ".join(password_cmd), f"piped into {' '.join(login_cmd)}")

        try:
            password = subprocess.run(
                password_cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ExternalToolFailure(password_cmd, None, str(e))
        if password.returncode != 0:
            raise ExternalToolFailure(password_cmd, password.returncode, password.stderr)

        try:
            login = subprocess.run(
                login_cmd,
                input=password.stdout,
                stdout=None if self.verbose else subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ExternalToolFailure(login_cmd, None, str(e))
        if login.returncode != 0:
            raise ExternalToolFailure(login_cmd, login.returncode, login.stderr)


def profile_environment(profile: str) -> dict:
    """Current environment with AWS_PROFILE set."""
    env = dict(os.environ)
    env["AWS_PROFILE"] = profile
    return env
