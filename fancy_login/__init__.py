"""
Fancy Login - AWS profile to Kubernetes context resolution.

Resolves an operator-selected AWS profile into the directives for a login
session: which Kubernetes context to activate, whether to log in to ECR,
whether to auto-launch k9s and which namespace to target.
"""

__version__ = "0.1.0"
