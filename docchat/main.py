"""Terminal front end: load a PDF, then chat about it."""

import argparse
import asyncio
from pathlib import Path

from docchat.assistant.models import AssistantReply
from docchat.config.settings import Settings
from docchat.logging.logger import Log
from docchat.pdf.exceptions import FormatError
from docchat.session.session import ChatSession, build_session

HELP_TEXT = (
    "Commands: /excerpt <text> select an excerpt, /explain ask about it, "
    "/reset clear the conversation, /quit exit"
)


def _print_progress(completed: int, total: int) -> None:
    print(f"\rExtracting text: {completed}/{total} pages", end="", flush=True)
    if completed == total:
        print()


async def _chat(session: ChatSession) -> None:
    print(HELP_TEXT)
    while True:
        try:
            line = input("> ")
        except EOFError:
            return
        line = line.strip()
        if not line:
            continue
        if line == "/quit":
            return
        if line == "/reset":
            session.reset()
            print("Conversation cleared.")
            continue
        if line.startswith("/excerpt"):
            session.select_excerpt(line.removeprefix("/excerpt"))
            print("Excerpt selected." if session.excerpt else "Excerpt cleared.")
            continue
        if line == "/explain":
            outcome = await session.ask_about_excerpt()
            if outcome is None:
                print("No excerpt selected.")
                continue
        else:
            outcome = await session.send(line)
        if isinstance(outcome, AssistantReply):
            print(outcome.text)
        elif outcome is not None:
            print(session.history.turns[-1].content)


async def run(pdf_path: Path, settings: Settings) -> int:
    try:
        data = pdf_path.read_bytes()
    except OSError as exc:
        print(f"Could not load {pdf_path.name}: {exc.strerror or exc}")
        return 1

    session = build_session(settings)
    try:
        try:
            document = await session.load_document(
                data,
                filename=pdf_path.name,
                on_progress=_print_progress,
            )
        except FormatError as exc:
            print(f"Could not load {pdf_path.name}: {exc}")
            return 1
        print(
            f"Loaded {document.filename}: {document.page_count} pages, "
            f"{document.char_count} characters"
        )
        if document.stats.failed_pages:
            print(f"{document.stats.failed_pages} pages could not be read")
        await _chat(session)
        return 0
    finally:
        await session.aclose()


def main() -> None:
    """Entry point: load settings -> configure logging -> chat about a PDF."""
    parser = argparse.ArgumentParser(description="Chat with an AI assistant about a PDF.")
    parser.add_argument("pdf", type=Path, help="path to the PDF document")
    args = parser.parse_args()

    settings = Settings()
    Log.configure(settings.log_level)
    raise SystemExit(asyncio.run(run(args.pdf, settings)))


if __name__ == "__main__":
    main()
