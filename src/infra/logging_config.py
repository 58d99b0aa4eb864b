import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """stdout 단일 핸들러 설정. 여러 번 호출해도 핸들러는 하나만 유지."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    for handler in root.handlers:
        if getattr(handler, "_xtemp", False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._xtemp = True  # type: ignore[attr-defined]
    root.addHandler(handler)
