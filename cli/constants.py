"""CLI constants and configuration."""

from pathlib import Path

from prompt_toolkit.styles import Style

COMMANDS = ["upload", "download", "delete", "lookup", "status", "clear", "exit", "help"]

# Commands whose arguments are local file paths
PATH_COMMANDS = ("upload",)

DEFAULT_CONFIG_PATH = Path.home() / '.storage-client' / 'config.json'

STYLE = Style.from_dict(
    {
        "prompt": "#2E9BD6 bold",
        "command": "#0088ff bold",
    }
)

BLUE = "\033[38;2;46;155;214m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLUE}
  ____  _
 / ___|| |_ ___  _ __ __ _  __ _  ___
 \\___ \\| __/ _ \\| '__/ _` |/ _` |/ _ \\
  ___) | || (_) | | | (_| | (_| |  __/
 |____/ \\__\\___/|_|  \\__,_|\\__, |\\___|
                           |___/
{RESET}"""

WELCOME_TITLE = "Storage CLI - blob storage cluster client"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "storage> "

HELP_TEXT = """Available commands:
  upload <file>... [--collection C] [--ttl T]   Upload files (several files are uploaded as one batch)
  download <fid> [output_path]                  Download a file (default: name sent by the server)
  delete <fid>                                  Delete a file
  lookup <fid>                                  Show the URL of the server holding a file
  status                                        Show master and cluster status
  clear                                         Clear screen and redisplay welcome message
  help                                          Show this help
  exit                                          Exit REPL

Examples:
  upload report.pdf
  upload a.txt b.txt c.txt --collection docs --ttl 3d
  lookup 3,01637037d6
  download 3,01637037d6 downloads/report.pdf
  delete 3,01637037d6"""
