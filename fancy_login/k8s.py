#!/usr/bin/env python3
"""
Fancy Login - Kubernetes Adapter

Wraps kubectl, fzf and k9s:
- list, switch and query contexts
- interactive context selection (bounded by a timeout)
- k9s launch in a namespace with AWS_PROFILE exported
"""

import subprocess
from typing import List, Optional

from .aws import profile_environment
from .errors import ExternalToolFailure
from .logger import FancyLogger, NullLogger
from .parsers import KubeContext, parse_kube_contexts
from .selector import SELECTION_TIMEOUT, fzf_select


class KubeCli:
    """Kubernetes collaborator backed by kubectl."""

    def __init__(
        self,
        config_path=None,
        logger: Optional[FancyLogger] = None,
        verbose: bool = False,
        selection_timeout: float = SELECTION_TIMEOUT
    ) -> None:
        self.config_path = config_path
        self.logger = logger or NullLogger()
        self.verbose = verbose
        self.selection_timeout = selection_timeout

    def _kubectl(self, *args: str, quiet: bool = False) -> str:
        command = ["kubectl", "config", *args]
        self.logger.log_external(" ".join(command))
        show_output = self.verbose and not quiet
        try:
            result = subprocess.run(
                command,
                stdout=None if show_output else subprocess.PIPE,
                stderr=None if show_output else subprocess.PIPE,
                text=True,
            )
        except OSError as e:
            raise ExternalToolFailure(command, None, str(e))
        if result.returncode != 0:
            raise ExternalToolFailure(command, result.returncode, result.stderr or "")
        return (result.stdout or "").strip()

    # --- Contexts ---

    def list_contexts(self) -> List[KubeContext]:
        """Contexts from the kubeconfig file (no kubectl needed)."""
        return parse_kube_contexts(self.config_path)

    def context_names(self) -> List[str]:
        output = self._kubectl("get-contexts", "-o", "name", quiet=True)
        return [line.strip() for line in output.splitlines() if line.strip()]

    def use_context(self, context: str) -> None:
        self._kubectl("use-context", context)

    def current_context(self) -> Optional[str]:
        return self._kubectl("current-context", quiet=True) or None

    def select_context(self) -> Optional[str]:
        """
        Pick a context with fzf.

        Returns None when nothing was chosen or no contexts exist.

        Raises:
            SelectionTimeout: No choice within the timeout
            ExternalToolFailure: kubectl or fzf failed
        """
        names = self.context_names()
        if not names:
            self.logger.log_event("K8S", "No contexts available for selection")
            return None
        return fzf_select(
            names,
            prompt="Select Kubernetes Context: ",
            what="context",
            timeout=self.selection_timeout,
        )

    # --- k9s ---

    def launch_k9s(self, namespace: str, profile: str) -> None:
        """Run k9s in the foreground, inheriting the terminal."""
        command = ["k9s", "-n", namespace]
        self.logger.log_external(" ".join(command), f"AWS_PROFILE={profile}")
        try:
            result = subprocess.run(command, env=profile_environment(profile))
        except OSError as e:
            raise ExternalToolFailure(command, None, str(e))
        if result.returncode != 0:
            raise ExternalToolFailure(command, result.returncode, "")
