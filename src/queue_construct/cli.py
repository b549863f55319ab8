"""
Module: cli.py
Description: Command line entry point for queue constructs.

Loads the constructs declared in the YAML config file and runs one
command:

    queue-construct package                 Print the compiled CloudFormation fragment
    queue-construct info                    Print the outputs of deployed constructs
    queue-construct <id>:failed:purge       Delete every message of the DLQ
    queue-construct <id>:failed:retry       Move DLQ messages back to the queue

Exit code is 0 on success and 1 on failure.
"""

import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import yaml
from botocore.exceptions import BotoCoreError, ClientError

from queue_construct.config.settings import settings
from queue_construct.construct import AwsProvider, Construct, load_constructs
from queue_construct.errors import ConfigurationError, QueueConstructError, RedriveAbortedError
from queue_construct.models.message import RedriveStats
from queue_construct.utils.logger import configure_logging, get_logger

logger = get_logger(__name__)

IRREVERSIBLE_COMMANDS = ("failed:purge",)


def load_config(path: str) -> Dict[str, Any]:
    """
    Load the YAML config file declaring the service and its constructs.

    Raises:
        ConfigurationError: If the file is missing or is not a YAML mapping
    """
    try:
        with open(path, encoding="utf-8") as config_file:
            config = yaml.safe_load(config_file)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"{path} must contain a YAML mapping")
    return config


def compile_template(constructs: Dict[str, Construct]) -> Dict[str, Any]:
    """Merge the CloudFormation fragments of every construct."""
    template: Dict[str, Any] = {"Resources": {}, "Outputs": {}}
    statements: List[Dict[str, Any]] = []
    for construct in constructs.values():
        fragment = construct.template()
        template["Resources"].update(fragment["Resources"])
        template["Outputs"].update(fragment["Outputs"])
        statements.extend(construct.permissions())
    if statements:
        template["IamRoleStatements"] = statements
    return template


def run_command(constructs: Dict[str, Construct], command: str) -> Any:
    """
    Run `<id>:<command>` against the matching construct.

    Raises:
        ConfigurationError: If the construct or command does not exist
    """
    construct_id, _, construct_command = command.partition(":")
    construct = constructs.get(construct_id)
    if construct is None:
        raise ConfigurationError(f'No construct named "{construct_id}"')

    available = construct.commands()
    handler = available.get(construct_command)
    if handler is None:
        raise ConfigurationError(
            f'Unknown command "{construct_command}" for construct "{construct_id}". '
            f"Available: {', '.join(available)}"
        )

    logger.info("Running construct command", construct_id=construct_id, command=construct_command)
    return handler()


def _confirm(command: str) -> bool:
    print(f"⚠️  WARNING: {command} permanently deletes every failed message.")
    try:
        response = input("Continue? (type 'yes' to confirm): ")
    except EOFError:
        print("\nNo confirmation on stdin, pass --yes to purge non-interactively.")
        return False
    return response.strip().lower() == 'yes'


def _print_stats(stats: RedriveStats) -> None:
    print(f"   Messages moved back to the queue: {stats.migrated}")
    if stats.failed_to_resend:
        print(f"   Messages that could not be resent: {stats.failed_to_resend}")
    if stats.failed_to_delete:
        print(f"   Messages resent but still in the DLQ: {stats.failed_to_delete}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="queue-construct",
        description="Generate queue resources and manage their dead letter queues",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  queue-construct package
  queue-construct emails:failed:retry --stage prod
  queue-construct emails:failed:purge --yes
        """
    )
    parser.add_argument(
        'command',
        help="'package', 'info' or '<construct>:failed:purge|retry'"
    )
    parser.add_argument(
        '--config',
        default=settings.config_file,
        help='YAML file declaring the service and its constructs'
    )
    parser.add_argument('--stage', default=settings.stage, help='Deployment stage')
    parser.add_argument('--region', default=settings.aws_region, help='AWS region')
    parser.add_argument(
        '--yes',
        action='store_true',
        help='Skip the confirmation prompt of irreversible commands'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logs')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return its exit code."""
    args = build_parser().parse_args(argv)
    configure_logging("DEBUG" if args.verbose else settings.log_level)

    try:
        config = load_config(args.config)
        provider = AwsProvider(
            service_name=config.get("service", settings.service_name),
            stage=args.stage,
            region=args.region,
        )
        constructs = load_constructs(provider, config.get("constructs"))

        if args.command == "package":
            print(json.dumps(compile_template(constructs), indent=2))
            return 0

        if args.command == "info":
            for construct_id, construct in constructs.items():
                for name, output in construct.outputs().items():
                    print(f"{construct_id}.{name}: {output()}")
            return 0

        if args.command.split(":", 1)[-1] in IRREVERSIBLE_COMMANDS and not args.yes:
            if not _confirm(args.command):
                print("Cancelled.")
                return 1

        result = run_command(constructs, args.command)
        if isinstance(result, RedriveStats):
            print("✅ Dead letter queue is empty.")
            _print_stats(result)
        else:
            print(f"✅ {args.command} completed.")
        return 0

    except RedriveAbortedError as e:
        print(f"❌ Error: {e.__cause__ or e}")
        _print_stats(e.stats)
        return 1

    except (QueueConstructError, ClientError, BotoCoreError) as e:
        print(f"❌ Error: {e}")
        logger.error("Command failed", command=args.command, error=str(e), error_type=type(e).__name__)
        return 1

    except KeyboardInterrupt:
        print("\n❌ Cancelled by user.")
        return 1


if __name__ == '__main__':
    sys.exit(main())
