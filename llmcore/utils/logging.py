"""Logging setup and rejected-attempt logging."""

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler

from llmcore.loop import Rejection

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    force: bool = False,
) -> Optional[Path]:
    """Configure the root logger: rich console output plus an optional log file.

    Returns the log file path when one was created.
    """
    handlers: list = [RichHandler(rich_tracebacks=True, show_path=False)]
    log_file = None

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_dir / f"tajniacy_{timestamp}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(message)s",
        datefmt="[%X]",
        handlers=handlers,
        force=force,
    )
    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return log_file


class RejectionLog:
    """``on_rejected`` callback writing every rejected reply to a log file.

    One file per task name under ``log_dir``, appended to for the lifetime of
    this object. Shows the rejected reply next to the one rejected before it.
    """

    def __init__(self, log_dir: Path = Path("logs/rejections")):
        self.log_dir = Path(log_dir)
        self._timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._lock = threading.Lock()

    def path_for(self, task: str) -> Path:
        return self.log_dir / f"{task}_{self._timestamp}.log"

    def __call__(self, rejection: Rejection) -> None:
        filepath = self.path_for(rejection.task)
        with self._lock:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            with open(filepath, "a", encoding="utf-8") as f:
                f.write(f"=== REJECTED {rejection.task.upper()} (attempt {rejection.attempt}) ===\n")
                f.write(f"Timestamp: {datetime.now().isoformat()}\n")
                f.write(f"Stage: {rejection.stage}\n")
                for reason in rejection.reasons:
                    f.write(f"Reason: {reason}\n")
                if rejection.previous_response is not None:
                    f.write("\n=== PREVIOUS REJECTED RESPONSE ===\n")
                    f.write(f"{rejection.previous_response}\n")
                f.write("\n=== RESPONSE ===\n")
                f.write(f"{rejection.response}\n\n")
                f.write("=" * 80 + "\n\n")
        logger.debug(f"Rejection logged to {filepath}")
