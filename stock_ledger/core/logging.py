import logging
import sys

_HANDLER_NAME = "stock_ledger.stdout"


def setup_logging(level: str = "INFO") -> None:
    """Configure logging to output to stdout with proper formatting."""
    root_logger = logging.getLogger()
    if any(handler.get_name() == _HANDLER_NAME for handler in root_logger.handlers):
        root_logger.setLevel(level)
        return
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Set lower log levels for some noisy libraries
    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
