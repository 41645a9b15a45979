"""Command-line triggers for scheduled and manual runs."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable, Sequence

from photo_regen.app_logging import configure_logging
from photo_regen.containers import AppContainer, build_container

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_TIMEOUT = 2

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="photo-regen", description="Regenerate order photos."
    )
    commands = parser.add_subparsers(dest="command", required=True)
    batch = commands.add_parser("run-batch", help="Process every eligible order.")
    batch.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the run after this many seconds.",
    )
    commands.add_parser("process-next", help="Process the first pending order.")
    return parser


async def _run(container: AppContainer, args: argparse.Namespace) -> int:
    try:
        if args.command == "process-next":
            result = await container.orchestrator.process_next(
                container.batch_config()
            )
            print(json.dumps(result.to_dict(), indent=2))
            return EXIT_FATAL if result.error is not None else EXIT_OK

        logger.info("Scheduled processor triggered")
        try:
            report = await asyncio.wait_for(
                container.orchestrator.run_batch(container.batch_config()),
                timeout=args.timeout,
            )
        except TimeoutError:
            logger.error("Run exceeded %s seconds", args.timeout)
            return EXIT_TIMEOUT
        print(json.dumps(report.to_dict(), indent=2))
        return EXIT_FATAL if report.fatal else EXIT_OK
    finally:
        await container.close_resources()


def main(
    argv: Sequence[str] | None = None,
    container_factory: Callable[[], AppContainer] = build_container,
) -> int:
    """Parse arguments, run the requested trigger and return an exit code."""
    configure_logging()
    args = build_parser().parse_args(argv)
    return asyncio.run(_run(container_factory(), args))


if __name__ == "__main__":
    sys.exit(main())
