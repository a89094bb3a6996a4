"""
Replication Deployer - CLI Entry Point.

Commands:
    deploy   - Create accounts, pools and volumes in both regions and authorize
               replication. Tears everything down afterwards if
               "cleanup_resources" is set in config.json.
    destroy  - Tear down the configured resources in reverse order.
    check    - Show the provisioning state of every configured resource.

Usage:
    crr-deployer deploy --project ./projects/crr-demo
    crr-deployer --debug check --project ./projects/crr-demo
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from crr_deployer import deployer
from crr_deployer import logger as log
from crr_deployer.core.exceptions import DeploymentError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crr-deployer",
        description="Provision Azure NetApp Files cross-region replication."
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging.")

    subparsers = parser.add_subparsers(dest="command", required=True)
    for name, help_text in (
        ("deploy", "Create resources in both regions and authorize replication."),
        ("destroy", "Delete the configured resources in reverse order."),
        ("check", "Show the provisioning state of the configured resources."),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--project",
            type=Path,
            default=Path.cwd(),
            help="Project directory containing config.json (default: current directory)."
        )
    return parser


def run(args: argparse.Namespace) -> int:
    log.configure_logger(debug_mode=args.debug)
    try:
        context = deployer.create_context(args.project)
        if context.config.debug_mode and not args.debug:
            log.configure_logger(debug_mode=True)

        if args.command == "deploy":
            deployer.deploy(context)
        elif args.command == "destroy":
            deployer.destroy(context)
        elif args.command == "check":
            deployer.info(context)
        return 0
    except DeploymentError as e:
        log.logger.error(str(e))
        log.print_stack_trace()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
