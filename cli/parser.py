"""Command parser for CLI input."""

import shlex

from cli.models import (
    CommandRequest,
    DeleteCommand,
    DownloadCommand,
    LookupCommand,
    StatusCommand,
    UploadCommand,
)


class ParseError(Exception):
    """Raised when command parsing fails."""

    pass


def parse_command(input_line: str) -> CommandRequest:
    """Parse user input into a CommandRequest object.

    Args:
        input_line: Raw user input from REPL

    Returns:
        CommandRequest object (one of Upload/Download/Delete/Lookup/Status)

    Raises:
        ParseError: If command syntax is invalid
    """
    if not input_line.strip():
        raise ParseError("Empty command")

    try:
        tokens = shlex.split(input_line)
    except ValueError as e:
        raise ParseError(f"Invalid syntax: {e}")

    if not tokens:
        raise ParseError("Empty command")

    command_name = tokens[0]

    if command_name == "upload":
        return _parse_upload(tokens[1:])
    elif command_name == "download":
        return _parse_download(tokens[1:])
    elif command_name == "delete":
        return _parse_delete(tokens[1:])
    elif command_name == "lookup":
        return _parse_lookup(tokens[1:])
    elif command_name == "status":
        return _parse_status(tokens[1:])
    else:
        raise ParseError(f"Unknown command: {command_name}")


def _parse_upload(args: list[str]) -> UploadCommand:
    """Parse 'upload <file>... [--collection C] [--ttl T]' command."""
    file_list = []
    options = {"--collection": "", "--ttl": ""}

    i = 0
    while i < len(args):
        arg = args[i]
        if arg in options:
            if i + 1 >= len(args):
                raise ParseError(f"{arg} requires a value")
            options[arg] = args[i + 1]
            i += 2
            continue
        file_list.append(arg)
        i += 1

    if not file_list:
        raise ParseError("upload requires at least one file")

    return UploadCommand(
        file_list=tuple(file_list),
        collection=options["--collection"],
        ttl=options["--ttl"],
    )


def _parse_download(args: list[str]) -> DownloadCommand:
    """Parse 'download <fid> [output_path]' command."""
    if not 1 <= len(args) <= 2:
        raise ParseError("download requires 1 or 2 arguments: <fid> [output_path]")

    file_id = args[0]
    output_path = args[1] if len(args) > 1 else None

    return DownloadCommand(file_id=file_id, output_path=output_path)


def _parse_delete(args: list[str]) -> DeleteCommand:
    """Parse 'delete <fid>' command."""
    if len(args) != 1:
        raise ParseError("delete requires exactly 1 argument: <fid>")

    return DeleteCommand(file_id=args[0])


def _parse_lookup(args: list[str]) -> LookupCommand:
    """Parse 'lookup <fid>' command."""
    if len(args) != 1:
        raise ParseError("lookup requires exactly 1 argument: <fid>")

    return LookupCommand(file_id=args[0])


def _parse_status(args: list[str]) -> StatusCommand:
    if args:
        raise ParseError("status takes no arguments")
    return StatusCommand()
