"""Lucidly CLI — serve the API and run the analysis cascades from a shell.

Usage:
    python lucidly.py serve --port 8000
    python lucidly.py info
    python lucidly.py analyze dream.txt --summary --sentiment
    python lucidly.py transcribe recording.wav
    python lucidly.py dreams --url http://localhost:8000 --email me@example.com
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import mimetypes
import sys
from pathlib import Path

from loguru import logger


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="lucidly",
        description="Lucidly — Dream Journal CLI",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ---- serve ----
    serve_parser = subparsers.add_parser("serve", help="Start the FastAPI API server")
    serve_parser.add_argument("--host", type=str, default=None, help="Host (default: settings)")
    serve_parser.add_argument("--port", type=int, default=None, help="Port (default: settings)")
    serve_parser.add_argument("--workers", type=int, default=None, help="Number of workers")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    # ---- info ----
    subparsers.add_parser("info", help="Show configuration and library versions")

    # ---- analyze ----
    analyze_parser = subparsers.add_parser("analyze", help="Analyze a dream narrative")
    analyze_parser.add_argument("path", type=str, nargs="?", default="-", help="Text file, or - for stdin")
    analyze_parser.add_argument("--summary", action="store_true", help="Generate a summary")
    analyze_parser.add_argument("--sentiment", action="store_true", help="Classify sentiment")
    analyze_parser.add_argument("--interpret", action="store_true", help="Generate an interpretation")

    # ---- transcribe ----
    transcribe_parser = subparsers.add_parser("transcribe", help="Transcribe an audio recording")
    transcribe_parser.add_argument("path", type=str, help="Audio file")

    # ---- dreams ----
    dreams_parser = subparsers.add_parser("dreams", help="List your dreams from a running server")
    dreams_parser.add_argument("--url", type=str, default="http://localhost:8000", help="API base URL")
    dreams_parser.add_argument("--email", type=str, required=True, help="Account email")

    args = parser.parse_args()

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "info":
        cmd_info()
    elif args.command == "analyze":
        cmd_analyze(args)
    elif args.command == "transcribe":
        cmd_transcribe(args)
    elif args.command == "dreams":
        cmd_dreams(args)


def _analyzer():
    from backend.config import settings
    from journal.inference import DreamAnalyzer, HuggingFaceClient

    if not settings.hf_api_key:
        logger.error("HF_API_KEY is not set (environment or .env)")
        sys.exit(1)
    client = HuggingFaceClient(
        api_key=settings.hf_api_key,
        base_url=settings.hf_api_base,
        timeout=settings.inference_timeout_seconds,
    )
    return DreamAnalyzer(client, models=settings.model_lists)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI API server."""
    import uvicorn

    from backend.config import settings

    logger.info("Starting Lucidly API server...")
    uvicorn.run(
        "backend.apps.api.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        workers=args.workers or settings.workers,
        reload=args.reload,
        log_level="info",
    )


def cmd_info() -> None:
    """Show configuration presence and library versions."""
    import platform
    from importlib.metadata import PackageNotFoundError, version

    from backend.config import settings

    def _ver(name: str) -> str:
        try:
            return version(name)
        except PackageNotFoundError:
            return "not installed"

    print(f"""
╔══════════════════════════════════════════╗
║          Lucidly System Info             ║
╠══════════════════════════════════════════╣
║  Python:     {platform.python_version():<28}║
║  Platform:   {platform.system() + ' ' + platform.machine():<28}║
║  FastAPI:    {_ver('fastapi'):<28}║
║  httpx:      {_ver('httpx'):<28}║
║  Version:    {settings.app_version:<28}║
║  Env:        {settings.app_env:<28}║
║  Storage:    {settings.storage_backend:<28}║
║  Auth:       {settings.auth_backend:<28}║
║  HF key:     {'set' if settings.hf_api_key else 'missing':<28}║
║  Supabase:   {'set' if settings.supabase_url else 'missing':<28}║
╚══════════════════════════════════════════╝
""")


def cmd_analyze(args: argparse.Namespace) -> None:
    """Run the requested cascades on a narrative and print the results."""
    text = sys.stdin.read() if args.path == "-" else Path(args.path).read_text(encoding="utf-8")
    text = text.strip()
    if not text:
        logger.error("No dream text provided")
        sys.exit(1)

    wanted = [flag for flag in ("summary", "sentiment", "interpret") if getattr(args, flag)]
    if not wanted:
        wanted = ["summary", "sentiment", "interpret"]

    async def run() -> None:
        analyzer = _analyzer()
        try:
            if "summary" in wanted:
                print(f"Summary:        {await analyzer.summarize(text)}")
            if "sentiment" in wanted:
                sentiment = await analyzer.analyze_sentiment(text)
                print(f"Sentiment:      {sentiment.label} ({sentiment.score:.2f})")
            if "interpret" in wanted:
                print(f"Interpretation: {await analyzer.interpret(text)}")
        finally:
            await analyzer.client.aclose()

    asyncio.run(run())


def cmd_transcribe(args: argparse.Namespace) -> None:
    """Transcribe a local audio file."""
    path = Path(args.path)
    if not path.exists():
        logger.error(f"Audio file not found: {path}")
        sys.exit(1)
    content_type = mimetypes.guess_type(path.name)[0] or "audio/wav"

    async def run() -> str:
        analyzer = _analyzer()
        try:
            return await analyzer.transcribe(path.read_bytes(), content_type)
        finally:
            await analyzer.client.aclose()

    print(asyncio.run(run()))


def cmd_dreams(args: argparse.Namespace) -> None:
    """Sign in against Supabase and list dreams through the API client."""
    import httpx

    from backend.config import settings
    from journal.auth import SupabaseSession
    from journal.client import LucidlyClient
    from journal.errors import AuthenticationError
    from journal.presentation import DreamView
    from journal.types import Dream

    session = SupabaseSession(settings.supabase_url, settings.supabase_anon_key)
    try:
        try:
            session.sign_in(args.email, getpass.getpass("Password: "))
        except (AuthenticationError, httpx.HTTPError) as e:
            logger.error(f"Sign-in failed: {e}")
            sys.exit(1)
        with LucidlyClient(args.url, session=session) as client:
            response = client.get_dreams()
    finally:
        session.close()

    if not response.success:
        logger.error(f"Failed to fetch dreams: {response.error}")
        sys.exit(1)

    for row in response.data or []:
        view = DreamView.from_dream(Dream.from_row(row))
        print(f"{view.date:<20} {view.mood.value:<10} {view.title}")


if __name__ == "__main__":
    main()
