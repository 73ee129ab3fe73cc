import logging
from logging.handlers import RotatingFileHandler

FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
MAX_LOG_BYTES = 200_000


def configure_logging(level: str = "INFO", log_file: str = "") -> logging.Logger:
    """Install stream (and optional rotating file) handlers on the package logger.

    Calling it again replaces the handlers it installed before.
    """
    root = logging.getLogger("envato_server")
    root.setLevel(level.upper() if isinstance(level, str) else level)

    for handler in list(root.handlers):
        if getattr(handler, "_envato_server", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(FORMAT)
    handlers = [logging.StreamHandler()]
    if log_file:
        # one previous file is kept, like the desktop crash log
        handlers.append(RotatingFileHandler(log_file, maxBytes=MAX_LOG_BYTES, backupCount=1, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler._envato_server = True
        root.addHandler(handler)
    return root


def mask_code(code: str) -> str:
    if not code or len(code) < 8:
        return "****"
    return code[:4] + "..." + code[-4:]
