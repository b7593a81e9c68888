"""Custom completer for the storage CLI with local path autocompletion."""

from pathlib import Path
from typing import Iterable

from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.document import Document

from cli.constants import COMMANDS, PATH_COMMANDS


class StorageCompleter(Completer):
    """
    Custom completer that provides:
    - Command name completion for the first token
    - Local file path completion for the 'upload' command
    """

    def get_completions(
        self, document: Document, complete_event
    ) -> Iterable[Completion]:
        """
        Generate completions based on cursor position and context.

        For the first token, completes command names.
        For 'upload' arguments, completes files and directories relative
        to the current directory. Option flags are not completed.
        """
        text = document.text_before_cursor
        tokens = text.split()

        is_typing_new_token = text.endswith(" ") or not tokens

        if not tokens or (len(tokens) == 1 and not is_typing_new_token):
            yield from self._complete_commands(tokens[0] if tokens else "")
            return

        command = tokens[0].lower()
        if command not in PATH_COMMANDS:
            return

        current_word = "" if is_typing_new_token else tokens[-1]
        if current_word.startswith("-"):
            return

        already_typed = set(tokens[1:])
        if not is_typing_new_token:
            already_typed.discard(current_word)

        yield from self._complete_paths(current_word, already_typed)

    def _complete_commands(self, partial: str) -> Iterable[Completion]:
        """Complete command names matching the partial input."""
        partial_lower = partial.lower()
        for cmd in COMMANDS:
            if cmd.startswith(partial_lower):
                yield Completion(cmd, start_position=-len(partial))

    def _complete_paths(self, partial: str, exclude: set) -> Iterable[Completion]:
        """
        Complete entries of the directory the partial path points into.

        Directories are offered with a trailing '/', hidden entries only
        when the partial name starts with '.'.
        """
        if "/" in partial:
            dir_part, name_part = partial.rsplit("/", 1)
            directory = Path(dir_part or "/")
            prefix = dir_part + "/"
        else:
            directory, name_part, prefix = Path.cwd(), partial, ""

        if not directory.is_dir():
            return

        try:
            entries = sorted(directory.iterdir())
        except OSError:
            return

        for entry in entries:
            if entry.name.startswith(".") and not name_part.startswith("."):
                continue
            if not entry.name.startswith(name_part):
                continue
            candidate = prefix + entry.name + ("/" if entry.is_dir() else "")
            if candidate in exclude:
                continue
            yield Completion(candidate, start_position=-len(partial))
