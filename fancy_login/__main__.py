#!/usr/bin/env python3
"""
Fancy Login - Entry Point

Run with: python -m fancy_login   (or the `fancy-login` script)

Usage:
    fancy-login [OPTIONS]

Options:
    -k, --k9s           Auto-launch k9s without prompting
    -v, --verbose       Enable verbose output
    --force-aws-login   Force AWS SSO login even if a valid session exists
    --config            Run the configuration wizard
    --config-add        Configure new profiles only
    --config-reset      Reconfigure every profile
    --resolve PROFILE   Show the directive for a profile and exit
    --list              Show the profile selection list and exit
    --version           Show version information
"""

import argparse
import sys

from . import __version__
from .errors import FancyLoginError, WizardAborted
from .settings import Settings
from .wizard import WizardMode


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fancy-login",
        description="Interactive AWS SSO login and Kubernetes context selection",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Pick a profile, log in, switch context
    fancy-login

    # Launch k9s without asking for profiles configured to auto-launch
    fancy-login -k

    # Configure profiles that are not in .fancy-config.yaml yet
    fancy-login --config-add

    # See what would happen for a profile
    fancy-login --resolve ACME_DEV_DEVENG

Environment Variables:
    FANCY_DEFAULT_REGION     - Region used when a profile has none
    FANCY_BIN_DIR            - Directory holding legacy .fancy-*.conf files
    FANCY_NAMESPACE_CONFIG   - Legacy namespace table
    FANCY_PROFILE_TEMP       - File receiving the AWS_PROFILE export
    FANCY_LOG_DIR            - Log directory
    FANCY_VERBOSE            - Same as --verbose when set to 1/true
""",
    )

    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable verbose output")
    parser.add_argument("-k", "--k9s", action="store_true",
                        help="Auto-launch k9s without prompting")
    parser.add_argument("--force-aws-login", action="store_true",
                        help="Force AWS SSO login even if a valid session exists")
    parser.add_argument("--version", action="store_true",
                        help="Show version information")

    actions = parser.add_mutually_exclusive_group()
    actions.add_argument("--config", dest="wizard_mode", action="store_const",
                         const=WizardMode.ASK, help="Run the configuration wizard")
    actions.add_argument("--config-add", dest="wizard_mode", action="store_const",
                         const=WizardMode.ADD_NEW_ONLY, help="Configure new profiles only")
    actions.add_argument("--config-reset", dest="wizard_mode", action="store_const",
                         const=WizardMode.OVERRIDE_ALL, help="Reconfigure every profile")
    actions.add_argument("--resolve", metavar="PROFILE",
                         help="Show the resolved directive for PROFILE and exit")
    actions.add_argument("--list", action="store_true",
                         help="Show the profile selection list and exit")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"fancy-login version {__version__}")
        return 0

    settings = Settings.from_env()
    settings = settings.with_overrides(
        verbose=args.verbose or settings.verbose,
        use_k9s=args.k9s,
        force_aws_login=args.force_aws_login,
    )

    from .orchestrator import LoginSession

    session = LoginSession(settings)

    try:
        if args.wizard_mode is not None:
            session.run_wizard(args.wizard_mode)
        elif args.resolve:
            session.display.directive_table(session.resolve_directive(args.resolve))
        elif args.list:
            for row in session.list_profiles_for_selection():
                print(row.display_text)
        else:
            session.offer_wizard()
            if session.run() is None:
                return 1
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        return 130
    except WizardAborted as e:
        session.display.warning(str(e))
        return 1
    except FancyLoginError as e:
        session.logger.log_error("Fatal", e)
        session.display.error(str(e))
        return 1
    except OSError as e:
        session.logger.log_error("Fatal", e)
        session.display.error(f"{e.filename or 'file'}: {e.strerror or e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
