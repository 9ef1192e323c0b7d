"""
数据模型模块

文档存储使用的 Pydantic 模型
"""

from .filestore import (
    AccessLevel,
    SortKey,
    SortOrder,
    DocumentStat,
    DocumentEntry,
    FoundDocument,
    DirectoryIndex,
    LoggingConfig,
    DocStoreConfig,
)

__all__ = [
    "AccessLevel",
    "SortKey",
    "SortOrder",
    "DocumentStat",
    "DocumentEntry",
    "FoundDocument",
    "DirectoryIndex",
    "LoggingConfig",
    "DocStoreConfig",
]
