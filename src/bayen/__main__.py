"""Bayen command line.

Examples:
  bayen "ما العقوبة المقررة لجريمة التزوير؟"
  bayen -m bayen-lite --plain "Summarise the rule in IRAC form"
  bayen --json "..." | jq .citations
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape

from bayen import __version__
from bayen.client import BayenClient
from bayen.config import ClientConfig, Settings, get_settings
from bayen.errors import BayenError, SchemaError
from bayen.logging_setup import setup_logging
from bayen.models import AssistantResponse, Model

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bayen",
        description="Ask the Bayen legal assistant a question.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="The API key is read from BAYEN_API_KEY (or a .env file).",
    )
    parser.add_argument("prompt", nargs="+", help="Question to ask")
    parser.add_argument(
        "--model",
        "-m",
        choices=[m.value for m in Model],
        default=None,
        help="Model to use (default: BAYEN_MODEL or bayen-pro)",
    )
    parser.add_argument(
        "--plain",
        action="store_true",
        help="Request plain markdown instead of the structured envelope",
    )
    parser.add_argument("--max-tokens", type=int, default=None, help="Response token limit")
    parser.add_argument("--json", action="store_true", help="Print the raw result as JSON")
    parser.add_argument("--base-url", default=None, help="Override the API endpoint root")
    parser.add_argument("--timeout", type=float, default=None, help="Per-attempt timeout (s)")
    parser.add_argument("--retries", type=int, default=None, help="Attempt cap")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def _client_config(settings: Settings, args: argparse.Namespace) -> ClientConfig:
    base = settings.to_client_config()
    return ClientConfig(
        base_url=args.base_url or base.base_url,
        timeout=args.timeout if args.timeout is not None else base.timeout,
        max_retries=args.retries if args.retries is not None else base.max_retries,
        backoff_base_ms=base.backoff_base_ms,
        backoff_max_ms=base.backoff_max_ms,
        jitter=base.jitter,
    )


def render(result: AssistantResponse | str, console: Console, as_json: bool = False) -> None:
    if as_json:
        if isinstance(result, AssistantResponse):
            console.print_json(result.model_dump_json())
        else:
            console.print_json(json.dumps(result, ensure_ascii=False))
        return

    if isinstance(result, str):
        console.print(Markdown(result))
        return

    if result.metadata.title:
        console.rule(result.metadata.title)
    console.print(Markdown(result.message))
    if result.citations:
        console.print()
        console.print("[bold]Citations[/bold]")
        for i, url in enumerate(result.citations, 1):
            console.print(f"  [{i}] {url}", markup=False)


def main(argv: list[str] | None = None, console: Console | None = None) -> int:
    """Entry point for the ``bayen`` script. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging("DEBUG" if args.verbose else settings.log_level)
    console = console or Console()

    if not settings.api_key:
        console.print("[red]BAYEN_API_KEY is not set.[/red]")
        return EXIT_USAGE

    try:
        config = _client_config(settings, args)
    except ValueError as e:
        console.print(f"[red]Invalid option:[/red] {escape(str(e))}")
        return EXIT_USAGE

    model = args.model or settings.model

    async def _run() -> AssistantResponse | str:
        async with BayenClient(settings.api_key, config) as client:
            return await client.ask(
                " ".join(args.prompt),
                model=model,
                structured_output=not args.plain,
                max_tokens=args.max_tokens,
            )

    try:
        result = asyncio.run(_run())
    except SchemaError as e:
        console.print(f"[red]Invalid request or response:[/red] {escape(str(e))}")
        return EXIT_USAGE
    except BayenError as e:
        logger.debug("Request failed", exc_info=True)
        console.print(f"[red]Request failed:[/red] {escape(str(e))}")
        return EXIT_ERROR

    render(result, console, as_json=args.json)
    return EXIT_OK


def main_cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
