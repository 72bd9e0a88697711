# tripledger/logger.py
import logging

# Package logger; modules call get_logger(__name__) and inherit this handler
logger = logging.getLogger("tripledger")
logger.setLevel(logging.INFO)

if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter("[%(asctime)s] [%(levelname)s] %(message)s")
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger."""
    if name.startswith("tripledger."):
        name = name[len("tripledger."):]
    return logger.getChild(name)
