import logging
import logging.handlers
import sys
from pathlib import Path

FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def setup_logging(settings) -> None:
    """Console logging, plus a rotating file when LOG_FILE is configured."""
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    fmt = logging.Formatter(FORMAT)

    handlers = []
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(fmt)
    handlers.append(console)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
        )
        fh.setFormatter(fmt)
        handlers.append(fh)

    root = logging.getLogger()
    root.setLevel(level)
    # avoid duplicate handlers when the app module is imported more than once
    if not getattr(root, "_inventory_configured", False):
        for h in handlers:
            root.addHandler(h)
        root._inventory_configured = True

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi", "apscheduler"):
        logging.getLogger(name).setLevel(level)
