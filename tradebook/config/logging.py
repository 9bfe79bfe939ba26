import logging
import os
import sys
from typing import Optional

# 嘗試 import settings，如果失敗（例如環境變數格式錯誤），則使用預設值
try:
    from tradebook.config.settings import settings
    LOG_LEVEL = settings.LOG_LEVEL.upper() if settings else "INFO"
    LOG_FILE = settings.LOG_FILE if settings else None
except Exception:
    LOG_LEVEL = "INFO"
    LOG_FILE = None

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s.%(module)s: %(message)s"

def setup_logging(name: str = "tradebook", log_file: Optional[str] = LOG_FILE) -> logging.Logger:
    """
    日誌輸出到 stderr，stdout 留給 CLI 的報表輸出。
    有設定 LOG_FILE 時另外寫一份到檔案 (例如 watch 長時間執行時)。
    """
    logger = logging.getLogger(name)

    # 防止重複添加 Handler
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL, logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger

# 預設 Logger
logger = setup_logging()
