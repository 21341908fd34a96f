import logging
import sys


def init_logger(name: str = "timetable", debug: bool = False) -> logging.Logger:
    """
    Initialize a logger with configurable verbosity.

    Parameters
    ----------
    name : str
        Logger name, e.g. a top-level package (``modules``, ``ui``).
    debug : bool
        If True, set log level to DEBUG. Otherwise, set to INFO.

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    logger = logging.getLogger(name)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    # Clear existing handlers to avoid duplicates (Streamlit reruns the script)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter("[%(levelname)s] %(asctime)s | %(name)s | %(message)s", "%H:%M:%S")
    )
    logger.addHandler(handler)
    return logger

APP_LOGGERS = ("modules", "optimizer", "ui")


def init_app_logging(debug: bool = False) -> list:
    """Attach a stdout handler to each application package logger.

    The root logger is left alone, so host handlers (Streamlit, pytest) keep working.
    """
    return [init_logger(name, debug=debug) for name in APP_LOGGERS]
