import os
import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

"""
ユーティリティモジュール。
- `AppConstants`  : アプリケーション定数
- `is_valid_label`: ラベル検証
- `setup_logging` : ローテーション付きのログ設定
"""


# アプリケーション定数
class AppConstants:
    """アプリケーション全体で使用する定数"""

    # 保存先
    DEFAULT_STORE_FILE = ".linemarks.json"
    STORE_ENV_VAR = "LINEMARKS_STORE"
    STORE_KEY = "bookmarks"

    # ログ関連
    LOGGER_NAME = "linemarks"
    DEFAULT_LOG_FILE = "linemarks.log"
    LOG_MAX_BYTES = 1024 * 1024 * 5
    LOG_BACKUP_COUNT = 3
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def is_valid_label(label: Optional[str]) -> bool:
    """空白だけのラベルは無効。"""
    return isinstance(label, str) and label.strip() != ""


def is_under_path(path: str, prefix: str) -> bool:
    """path が prefix で始まるかどうか（ファイル自身、または配下のファイル）。"""
    return bool(prefix) and path.startswith(prefix)


def setup_logging(log_file: Optional[str] = None, level: str = "INFO",
                  max_bytes: int = AppConstants.LOG_MAX_BYTES,
                  backup_count: int = AppConstants.LOG_BACKUP_COUNT) -> logging.Logger:
    """ログ設定。ファイルへはローテーション付きで、コンソールへは WARNING 以上を出す。"""
    logger = logging.getLogger(AppConstants.LOGGER_NAME)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    log_formatter = logging.Formatter(AppConstants.LOG_FORMAT)

    if logger.hasHandlers():
        logger.handlers.clear()

    if log_file:
        directory = os.path.dirname(os.path.abspath(log_file))
        os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count,
                                           encoding='utf-8')
        file_handler.setFormatter(log_formatter)
        file_handler.setLevel(logger.level)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(logging.WARNING)
    logger.addHandler(console_handler)
    return logger
