"""REPL with prompt_toolkit for user interaction."""

import asyncio
import os
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory

from common.logging_config import get_logger
from cli.commands import (
    close_client,
    handle_delete,
    handle_download,
    handle_lookup,
    handle_status,
    handle_upload,
)
from cli.completer import StorageCompleter
from cli.constants import (
    HELP_TEXT,
    LOGO,
    PROMPT_TEXT,
    STYLE,
    WELCOME_HELP,
    WELCOME_TITLE,
)
from cli.models import (
    DeleteCommand,
    DownloadCommand,
    LookupCommand,
    StatusCommand,
    UploadCommand,
)
from cli.parser import ParseError, parse_command

logger = get_logger(__name__)


def clear_screen() -> None:
    """Clear the terminal screen (cross-platform)."""
    if sys.platform == "win32":
        os.system("cls")
    else:
        os.system("clear")


def show_logo() -> None:
    """Display logo with ANSI colors."""
    print(LOGO)


async def dispatch_command(cmd_obj) -> str:
    """Dispatch parsed command to appropriate handler."""
    if isinstance(cmd_obj, UploadCommand):
        return await handle_upload(cmd_obj)
    elif isinstance(cmd_obj, DownloadCommand):
        return await handle_download(cmd_obj)
    elif isinstance(cmd_obj, DeleteCommand):
        return await handle_delete(cmd_obj)
    elif isinstance(cmd_obj, LookupCommand):
        return await handle_lookup(cmd_obj)
    elif isinstance(cmd_obj, StatusCommand):
        return await handle_status(cmd_obj)
    else:
        return f"Unknown command type: {type(cmd_obj)}"


async def repl_session() -> None:
    """Run the interactive REPL until 'exit' or EOF."""
    history = InMemoryHistory()
    session: PromptSession = PromptSession(
        completer=StorageCompleter(), history=history, style=STYLE
    )

    clear_screen()
    show_logo()
    print(WELCOME_TITLE)
    print(WELCOME_HELP)

    try:
        while True:
            try:
                user_input = await session.prompt_async([("class:prompt", PROMPT_TEXT)])

                if not user_input.strip():
                    continue

                if user_input.strip() == "exit":
                    print("Goodbye!")
                    break

                if user_input.strip() == "help":
                    print(HELP_TEXT)
                    continue

                if user_input.strip() == "clear":
                    clear_screen()
                    show_logo()
                    print(WELCOME_TITLE)
                    print(WELCOME_HELP)
                    continue

                cmd_obj = parse_command(user_input)
                result = await dispatch_command(cmd_obj)
                print(result)

            except ParseError as e:
                print(f"Error: {e}")
            except KeyboardInterrupt:
                continue
            except EOFError:
                print("\nGoodbye!")
                break
            except Exception as e:
                logger.error(f"Command failed: {e}", exc_info=True)
                print(f"Unexpected error: {e}")
    finally:
        await close_client()


def repl_loop() -> None:
    """Start interactive REPL with prompt_toolkit."""
    asyncio.run(repl_session())
