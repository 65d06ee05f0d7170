import logging
import os
from logging.handlers import RotatingFileHandler
import sys

# ログ出力先: LIVELINK_LOG_DIR (server.py が settings から設定) が無ければ backend/logs
if "LIVELINK_LOG_DIR" in os.environ:
    LOG_DIR = os.environ["LIVELINK_LOG_DIR"]
else:
    LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")

LOG_FILE = "livelink.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

os.makedirs(LOG_DIR, exist_ok=True)

def _level() -> int:
    level = logging.getLevelName(os.environ.get("LIVELINK_LOG_LEVEL", "INFO").upper())
    return level if isinstance(level, int) else logging.INFO

def get_logger(name: str) -> logging.Logger:
    """
    livelink.log (10MB x 5世代でローテーション) とコンソールに出力するロガー。
    同じ name で何度呼んでもハンドラは一度だけ付く。
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = _level()
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    try:
        file_handler = RotatingFileHandler(
            os.path.join(LOG_DIR, LOG_FILE),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
    except OSError as e:
        # 書き込めない環境ではコンソールのみ
        print(f"Failed to set up file logging: {e}", file=sys.stderr)
    else:
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    return logger
