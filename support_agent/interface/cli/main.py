"""Command-line entry point: serve the API, build the index, or ask a question."""

from __future__ import annotations

import argparse
import asyncio
import sys

from support_agent.config.composition import Container
from support_agent.config.settings import AppSettings
from support_agent.domain.errors import ProtocolError
from support_agent.interface.client.chat_client import ChatClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("support-agent")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the streaming chat API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    index = sub.add_parser("index", help="Build the document index and print statistics")
    index.add_argument("--corpus", default=None, help="Corpus directory (default: CORPUS_DIR)")

    ask = sub.add_parser("ask", help="Send one message to a running server and stream the reply")
    ask.add_argument("message")
    ask.add_argument("--url", default="http://localhost:3001")
    return parser


def run_serve(args: argparse.Namespace, settings: AppSettings) -> None:
    import uvicorn

    from support_agent.interface.http.api import create_app

    uvicorn.run(
        create_app(Container(settings)),
        host=args.host or settings.host,
        port=args.port or settings.port,
    )


async def run_index(args: argparse.Namespace, settings: AppSettings) -> int:
    indexer = Container(settings).get_indexer()
    await indexer.build(args.corpus or settings.corpus_dir)
    stats = indexer.stats()
    print(f"Index ready: {stats.document_count} documents, {stats.chunk_count} chunks")
    return 0


async def run_ask(args: argparse.Namespace) -> int:
    async with ChatClient(args.url) as client:
        reply = await client.send_message([], args.message)
        if reply.is_escalation:
            print("[escalated to a human agent]")
        try:
            async with reply:
                async for fragment in reply.fragments:
                    sys.stdout.write(fragment)
                    sys.stdout.flush()
        except ProtocolError as err:
            print(f"\n[ERROR] {type(err).__name__}: {err}")
            return 1
    print()
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = AppSettings()

    if args.command == "serve":
        run_serve(args, settings)
        return 0
    if args.command == "index":
        return asyncio.run(run_index(args, settings))
    return asyncio.run(run_ask(args))


if __name__ == "__main__":
    sys.exit(main())
