"""Command line helpers to create or update the assistant.

Usage:
    python -m src.assistant.admin create [--name NAME] [--instructions TEXT] [--model MODEL]
    python -m src.assistant.admin update [--assistant-id ID] [--name NAME] ...

``create`` prints the new assistant id; put it in ``OPENAI_ASSISTANT_ID``.
"""

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence

from src.assistant.provider import (
    DEFAULT_ASSISTANT_NAME,
    DEFAULT_INSTRUCTIONS,
    DEFAULT_MODEL,
    AssistantProvider,
    ProviderError,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="python -m src.assistant.admin")
    commands = parser.add_subparsers(dest="command", required=True)

    create = commands.add_parser("create", help="Create a new assistant")
    create.add_argument("--name", default=DEFAULT_ASSISTANT_NAME)
    create.add_argument("--instructions", default=DEFAULT_INSTRUCTIONS)
    create.add_argument("--model", default=DEFAULT_MODEL)

    update = commands.add_parser("update", help="Update an existing assistant")
    update.add_argument("--assistant-id", default=None, help="Defaults to OPENAI_ASSISTANT_ID")
    update.add_argument("--name", default=None)
    update.add_argument("--instructions", default=None)
    update.add_argument("--model", default=DEFAULT_MODEL)

    return parser


async def run_command(args: argparse.Namespace, provider: AssistantProvider) -> str:
    """Execute a parsed command and return the affected assistant id."""
    if args.command == "create":
        return await provider.create_assistant(
            name=args.name,
            instructions=args.instructions,
            model=args.model,
        )
    return await provider.update_assistant(
        assistant_id=args.assistant_id,
        name=args.name,
        instructions=args.instructions,
        model=args.model,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    async def _run() -> str:
        provider = AssistantProvider()
        try:
            return await run_command(args, provider)
        finally:
            await provider.close()

    try:
        assistant_id = asyncio.run(_run())
    except ProviderError as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(assistant_id)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    sys.exit(main())
