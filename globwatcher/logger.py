import logging
import os

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logger(name, log_dir=None, log_filename=None, level=logging.INFO, console=True):
    """
    Set up and return a logger with optional file and console handlers.

    Args:
        name (str): The logger name.
        log_dir (str): Directory where the log file will be stored. No file
            handler is installed when omitted.
        log_filename (str): Log file name, defaults to ``<name>.log``.
        level (int): Logging level.
        console (bool): Whether to add a console handler.

    Returns:
        logging.Logger: The configured logger.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear out any existing handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_filename = log_filename or f"{name.replace('.', '_')}.log"
        file_handler = logging.FileHandler(os.path.join(log_dir, log_filename))
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def level_from_name(name, default=logging.INFO):
    """Map a level name such as ``"debug"`` to its numeric value."""
    if not name:
        return default
    return getattr(logging, str(name).upper(), default)
