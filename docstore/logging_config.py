"""
日志配置模块

为文档存储提供统一的日志配置，支持控制台和轮转文件输出。
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

from docstore.models.filestore import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    fmt: str = DEFAULT_FORMAT,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5
) -> logging.Logger:
    """
    设置应用日志配置

    Args:
        log_level: 日志级别 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: 日志文件路径（为空则只输出到控制台）
        fmt: 日志格式
        max_bytes: 单个日志文件最大大小
        backup_count: 保留的日志备份数量

    Returns:
        根日志记录器
    """
    level = getattr(logging, log_level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # 清除现有的处理器
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    log_format = logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")

    # 控制台处理器
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(log_format)
    root_logger.addHandler(console_handler)

    # 文件处理器 (轮转)
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(log_format)
        root_logger.addHandler(file_handler)

    # 第三方库只输出警告
    logging.getLogger("aiofiles").setLevel(logging.WARNING)

    root_logger.debug(f"Logging initialized: level={log_level}, file={log_file}")
    return root_logger


def setup_logging_from_config(config: LoggingConfig) -> logging.Logger:
    """按 LoggingConfig 设置日志"""
    return setup_logging(
        log_level=config.level,
        log_file=config.file,
        fmt=config.format,
        max_bytes=config.max_bytes,
        backup_count=config.backup_count,
    )


__all__ = ["setup_logging", "setup_logging_from_config"]
