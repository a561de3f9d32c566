"""Terminal front end for the demo chat client.

Examples:
- python -m chatcamp --mock
- python -m chatcamp --storage outputs/storage.json --verbose
"""

from __future__ import annotations

import argparse
import asyncio
from collections.abc import Awaitable, Callable
import logging
from pathlib import Path
import sys
from typing import TextIO

from chatcamp.client import ChatClient
from chatcamp.config import Config
from chatcamp.errors import ChatcampError, ConfigurationError
from chatcamp.types import ConversationSummary, Turn

HELP_TEXT = """\
Type a message and press Enter to send it.
Commands:
  /new [title]     start a new conversation
  /list            show saved conversations
  /open N          switch to conversation N from /list
  /delete N [M..]  delete conversations by /list number
  /key VALUE       save an API key (/key with no value clears it)
  /help            show this help
  /quit            exit"""

InputFn = Callable[[str], Awaitable[str]]


def render_turn(turn: Turn) -> str:
    """Format a turn for the transcript."""
    speaker = "you" if turn.is_from_user else "ai"
    return f"{speaker}> {turn.text}"


class ChatRepl:
    """Line-oriented chat session over a ``ChatClient``."""

    def __init__(
        self,
        client: ChatClient,
        *,
        read_line: InputFn,
        out: TextIO = sys.stdout,
    ) -> None:
        self.client = client
        self._read_line = read_line
        self._out = out
        self.current_id: str | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._shown = 0

    def _print(self, text: str = "") -> None:
        print(text, file=self._out)

    async def start(self) -> str:
        """Open a fresh conversation, as the app does on each launch.

        Returns the id of the conversation now showing.
        """
        title = f"Chat {len(self.client.list_conversations()) + 1}"
        conversation = await self.client.create_conversation(title)
        self._switch(conversation.id)
        if not self.client.credential_configured:
            self._print("No API key configured. Use /key VALUE to save one.")
        return conversation.id

    def _switch(self, conversation_id: str) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
        self.current_id = conversation_id
        feed = self.client.observe(conversation_id)
        self._shown = 0
        self._on_turns(feed.value)
        self._unsubscribe = feed.subscribe(self._on_turns)

    def _on_turns(self, turns: tuple[Turn, ...]) -> None:
        for turn in turns[self._shown :]:
            self._print(render_turn(turn))
        self._shown = len(turns)

    async def run(self) -> None:
        """Read lines until EOF or /quit."""
        await self.start()
        while True:
            try:
                line = await self._read_line("> ")
            except EOFError:
                break
            if not await self.handle(line):
                break

    async def handle(self, line: str) -> bool:
        """Process one input line; return False to stop."""
        text = line.strip()
        if not text:
            return True
        if not text.startswith("/"):
            conversation_id = self.current_id or await self.start()
            try:
                await self.client.submit(conversation_id, text)
            except ChatcampError as e:
                self._print(f"! {e}")
            return True

        command, _, arg = text.partition(" ")
        arg = arg.strip()
        if command in {"/quit", "/exit"}:
            return False
        if command == "/help":
            self._print(HELP_TEXT)
        elif command == "/new":
            title = arg or f"Chat {len(self.client.list_conversations()) + 1}"
            conversation = await self.client.create_conversation(title)
            self._print(f"Started {conversation.title!r}")
            self._switch(conversation.id)
        elif command == "/list":
            self._list()
        elif command == "/open":
            chosen = self._pick(arg.split()[:1])
            if chosen:
                self._print(f"Opened {chosen[0].title!r}")
                self._switch(chosen[0].id)
        elif command == "/delete":
            await self._delete(arg.split())
        elif command == "/key":
            await self.client.set_credential(arg or None)
            self._print("API key saved." if arg else "API key cleared.")
        else:
            self._print(f"Unknown command {command!r}; try /help")
        return True

    def _list(self) -> None:
        summaries = self.client.list_conversations()
        if not summaries:
            self._print("No saved conversations.")
            return
        for idx, s in enumerate(summaries, start=1):
            marker = "*" if s.id == self.current_id else " "
            self._print(
                f"{marker}{idx:>3}. {s.title} - {s.turn_count} messages - "
                f"{s.created_at:%Y-%m-%d}"
            )

    def _pick(self, numbers: list[str]) -> list[ConversationSummary]:
        summaries = self.client.list_conversations()
        chosen: list[ConversationSummary] = []
        for raw in numbers:
            if not raw.isdigit() or not 1 <= int(raw) <= len(summaries):
                self._print(f"No conversation number {raw!r}; see /list")
                return []
            chosen.append(summaries[int(raw) - 1])
        if not chosen:
            self._print("Give a conversation number from /list")
        return chosen

    async def _delete(self, numbers: list[str]) -> None:
        chosen = self._pick(numbers)
        if not chosen:
            return
        await self.client.delete_conversations({s.id for s in chosen})
        self._print(f"Deleted {len(chosen)} conversation(s)")
        if any(s.id == self.current_id for s in chosen):
            await self.start()


async def _read_stdin(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="chatcamp", description="Chat with an LLM from the terminal."
    )
    parser.add_argument(
        "--storage",
        type=Path,
        default=None,
        help="JSON file holding conversations and the API key.",
    )
    parser.add_argument(
        "--mock",
        action=argparse.BooleanOptionalAction,
        default=False,
        help="Use the offline echo provider instead of real API calls.",
    )
    parser.add_argument(
        "--api-key",
        default=None,
        help="API key override. Usually read from OPENROUTER_API_KEY.",
    )
    parser.add_argument(
        "--verbose", action="store_true", help="Log debug output to stderr."
    )
    return parser


def build_config_or_exit(args: argparse.Namespace) -> Config:
    """Build Config from parsed args, exiting with a concise actionable error."""
    try:
        return Config(
            api_key=args.api_key,
            storage_path=args.storage,
            use_mock=bool(args.mock),
        )
    except ConfigurationError as exc:
        hint = f" Hint: {exc.hint}" if exc.hint else ""
        print(f"Configuration error: {exc}.{hint}", file=sys.stderr)
        raise SystemExit(2) from exc


async def main_async(config: Config) -> None:
    async with ChatClient.open(config) as client:
        repl = ChatRepl(client, read_line=_read_stdin)
        print("chatcamp - /help for commands")
        await repl.run()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    config = build_config_or_exit(args)
    try:
        asyncio.run(main_async(config))
    except KeyboardInterrupt:
        print()
