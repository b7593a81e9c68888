"""CLI entry point."""

import os
import sys

from common.logging_config import setup_logging
from cli.repl import repl_loop

LOGGED_COMPONENTS = ('cli', 'storage_client', 'common')


def main() -> None:
    """Entry point for the storage-cli script; ``--debug`` enables debug logs."""
    debug = '--debug' in sys.argv
    if debug:
        sys.argv.remove('--debug')

    # Warnings only by default so log lines don't interleave with the prompt.
    log_level = 'DEBUG' if debug else os.getenv('LOG_LEVEL', 'WARNING')
    loggers = [setup_logging(component, log_level=log_level) for component in LOGGED_COMPONENTS]
    logger = loggers[0]

    logger.info(f"CLI starting [log_level={log_level}]")
    try:
        repl_loop()
    except Exception as e:
        logger.error(f"CLI error: {e}", exc_info=True)
        raise
    finally:
        logger.info("CLI exiting")


if __name__ == "__main__":
    main()
