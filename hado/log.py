import logging
import sys


def setup_logging(level=logging.INFO):
    """
    Configure the root logger for command-line use.

    Uses the format "timestamp - logger name - level - message" and writes to
    stdout. Library modules only create loggers; they never call this.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )
