"""
Main entry point for the Stacker Alert system.
"""

import argparse
import asyncio
import sys
from typing import Any, Dict, List, Optional

from .components.alert_formatter import MAGENTA, colorize
from .models.config import DEFAULT_RELAYS
from .orchestrator import ApplicationOrchestrator
from .services.config_manager import ConfigurationManager
from .utils.error_handling import ConfigurationError, StackerAlertError
from .utils.logging import get_logger, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags; single-dash long names with double-dash aliases."""
    parser = argparse.ArgumentParser(
        prog="stacker-alert",
        description="Watch Stacker News for listings from authors, topics "
        "and domains you care about.",
    )
    parser.add_argument(
        "-authors", "--authors", help="Comma-separated list of accepted authors"
    )
    parser.add_argument(
        "-topics", "--topics", help="Comma-separated list of interesting topics"
    )
    parser.add_argument(
        "-domains", "--domains", help="Comma-separated list of interesting domains"
    )
    parser.add_argument(
        "-mute",
        "--mute",
        help="Comma-separated list of muted words "
        "(applied to authors, topics, domains)",
    )
    parser.add_argument(
        "-territory", "--territory", help="Territory, default is home (all)"
    )
    parser.add_argument(
        "-interval",
        "--interval",
        type=int,
        help="Interval check in minutes, default is 5",
    )
    parser.add_argument(
        "-nostr-from",
        "--nostr-from",
        dest="nostr_from",
        help="Nostr private hex key of the notifier",
    )
    parser.add_argument(
        "-nostr-to",
        "--nostr-to",
        dest="nostr_to",
        help="Nostr public hex key of the recipient (you!)",
    )
    parser.add_argument(
        "-nostr-relays",
        "--nostr-relays",
        dest="nostr_relays",
        help=f"Nostr relays, default is {','.join(DEFAULT_RELAYS)}",
    )
    parser.add_argument(
        "-bidirectional",
        "--bidirectional",
        action="store_true",
        default=None,
        help="Also match topics/domains that contain the listing text",
    )
    parser.add_argument(
        "-config", "--config", help="Optional YAML configuration file"
    )
    parser.add_argument(
        "-log-level", "--log-level", dest="log_level", help="Log level, default INFO"
    )
    return parser


def overrides_from_args(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "authors": args.authors,
        "topics": args.topics,
        "domains": args.domains,
        "mute": args.mute,
        "territory": args.territory,
        "interval": args.interval,
        "nostr_from": args.nostr_from,
        "nostr_to": args.nostr_to,
        "nostr_relays": args.nostr_relays,
        "bidirectional": args.bidirectional,
        "log_level": args.log_level,
    }


async def async_main(orchestrator: ApplicationOrchestrator) -> None:
    """Async main application entry point."""
    await orchestrator.run()


def main(argv: Optional[List[str]] = None) -> None:
    """Main application entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    print("")

    try:
        config = ConfigurationManager(args.config).load_config(
            overrides_from_args(args)
        )
    except ConfigurationError as e:
        # Configuration problems exit cleanly before any network activity
        print(colorize(str(e), MAGENTA) + "\n")
        if e.show_usage:
            parser.print_help()
        sys.exit(0)

    setup_logging(log_dir=config.log_dir, log_level=config.log_level)
    logger = get_logger("main")

    try:
        asyncio.run(async_main(ApplicationOrchestrator(config)))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
    except StackerAlertError as e:
        logger.critical("Fatal error, stopping", extra={"error": str(e)})
        sys.exit(1)


if __name__ == "__main__":
    main()
