"""Command-line entry point for the voice assistant."""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from voice_assistant.bootstrap import build_container, build_pipeline
from voice_assistant.core import (
    AppSettings,
    InputError,
    TranscriptionError,
    configure_logging,
    load_app_settings,
)
from voice_assistant.core.models import ProcessingStatus, VoiceProcessOptions
from voice_assistant.storage import SqliteConversationStore


def build_parser() -> argparse.ArgumentParser:
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(description="Polish voice assistant pipeline")
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Path to a .env file containing configuration overrides.",
    )
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("info", help="Show the active configuration.")
    subparsers.add_parser("chats", help="List stored chats, newest first.")
    subparsers.add_parser("new-chat", help="Start a new chat for later runs.")

    process = subparsers.add_parser("process", help="Process one recorded utterance.")
    process.add_argument("audio", type=Path, help="Path to the recorded audio file.")
    process.add_argument(
        "--language", default=None, help="Transcription language (default: pl)."
    )
    process.add_argument(
        "--context", default=None, help="Caller-supplied context for the reply."
    )
    process.add_argument(
        "--location", default=None, help="Human readable user location."
    )
    process.add_argument("--lat", type=float, default=None, help="User latitude.")
    process.add_argument("--lon", type=float, default=None, help="User longitude.")
    process.add_argument(
        "--no-history",
        dest="history",
        action="store_false",
        help="Neither read nor record conversation history.",
    )
    return parser


def execute(args: argparse.Namespace, settings: AppSettings) -> int:
    """Execute the requested CLI command and return the exit status."""
    command = args.command or "info"
    if command == "info":
        _print_info(settings)
        return 0
    if command == "chats":
        _print_chats(settings)
        return 0
    if command == "new-chat":
        with SqliteConversationStore(settings.storage) as store:
            chat_id = store.start_chat(datetime.now().astimezone())
        print(f"Started chat {chat_id}")
        return 0
    return asyncio.run(_run_process(args, settings))


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = load_app_settings(env_file=args.env_file)
    configure_logging(settings.logging)
    sys.exit(execute(args, settings))


def _print_info(settings: AppSettings) -> None:
    print("Voice assistant is ready. Configure API keys to get started.")
    print(f"Chat model: {settings.openai.chat_model}")
    print(f"OpenAI key configured: {'yes' if settings.openai.api_key else 'no'}")
    print(f"Web search: {'enabled' if settings.gemini.api_key else 'disabled'}")
    print(f"Places search: {'enabled' if settings.places.api_key else 'disabled'}")
    session = "configured" if settings.integrations.session_token else "missing"
    print(f"Integrations backend: {settings.integrations.base_url} ({session})")
    print(f"Contacts export: {settings.contacts.export_path or '-'}")
    print(f"Database path: {settings.storage.db_path}")


def _print_chats(settings: AppSettings) -> None:
    with SqliteConversationStore(settings.storage) as store:
        chats = store.list_chats()
    if not chats:
        print("No chats recorded yet.")
        return
    for chat in chats:
        count = chat.exchange_count
        print(f"{chat.chat_id:>4}  {chat.updated_at}  {count:>3}  {chat.title or '-'}")


def _print_status(status: ProcessingStatus) -> None:
    print(f"[status] {status.value}", file=sys.stderr)


def _print_transcript(transcript: str) -> None:
    print(f"[transcript] {transcript}", file=sys.stderr)


async def _run_process(args: argparse.Namespace, settings: AppSettings) -> int:
    """Run the pipeline once and print the result JSON."""
    container = build_container(settings, persist_history=args.history)
    try:
        pipeline = build_pipeline(container, settings)
        options = VoiceProcessOptions(
            language=args.language,
            context=args.context,
            location=args.location,
            latitude=args.lat,
            longitude=args.lon,
            on_transcript=_print_transcript,
            on_status_change=_print_status,
        )
        try:
            result = await pipeline.run(args.audio, options)
        except InputError as exc:
            print(f"Invalid audio: {exc}", file=sys.stderr)
            return 2
        except TranscriptionError as exc:
            print(f"Transcription failed: {exc}", file=sys.stderr)
            return 1
        await pipeline.drain()
    finally:
        await container.aclose()

    print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
    return 0


if __name__ == "__main__":
    main()
