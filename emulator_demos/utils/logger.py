import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(name: str, level=logging.INFO) -> logging.Logger:
    """
    Returns the named logger writing to stderr, so the walkthrough output on
    stdout stays readable. Calling it again does not stack handlers.
    """
    named_logger = logging.getLogger(name)
    named_logger.setLevel(level)

    if not any(getattr(h, "_emulator_demos", False) for h in named_logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        handler._emulator_demos = True
        named_logger.addHandler(handler)

    return named_logger


logger = setup_logger("emulator_demos")
