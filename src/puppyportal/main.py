"""
Puppy portal entry point.

This file handles startup concerns (arg-parsing, logging) and launches the appropriate interface
(API server or terminal chat client).
"""

import argparse
import logging
import sys

from puppyportal.config import settings

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _init_logging(level: str) -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
        stream=sys.stdout,
    )
    # Outbound request lines are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def main(argv: list[str] | None = None) -> None:
    """
    Main entry point for the puppy portal.

    Starts the REST API, or the terminal chat client talking to an already running API.
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = argparse.ArgumentParser(description="Run the SWVA Chihuahua puppy portal")
    parser.add_argument(
        "--mode",
        choices=["api", "cli"],
        type=str.lower,
        default="api",
        help="Launch the REST API or the chat CLI (default: api)",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        default=settings.LOG_LEVEL,
        help="Logging level (default from env: %(default)s)",
    )
    parser.add_argument(
        "--url",
        default=None,
        help="Base URL of the portal API for --mode cli (default: http://localhost:API_PORT)",
    )
    args = parser.parse_args(argv)

    # Override log level setting with command-line argument
    settings.LOG_LEVEL = args.log_level

    _init_logging(settings.LOG_LEVEL)

    logger.info("Starting puppy portal [%s mode]", args.mode)
    logger.debug(
        "Settings: %s",
        settings.model_dump(exclude={"LLM_API_KEY", "SUPABASE_ANON_KEY", "PORTAL_ACCESS_TOKEN"}),
    )

    if args.mode == "api":
        # Lazy import to avoid server dependencies in CLI mode
        from puppyportal.api.app import run_api  # pylint: disable=import-outside-toplevel

        run_api(host="0.0.0.0", port=settings.API_PORT, reload=settings.DEBUG)
    else:
        from puppyportal.client.cli import run_cli  # pylint: disable=import-outside-toplevel

        run_cli(base_url=args.url)


if __name__ == "__main__":
    main()
