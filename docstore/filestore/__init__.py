"""
文档存储系统

以本地目录为根的异步文档存储：
- 虚拟路径解析与访问控制
- 按扩展名编解码（JSON / JSONL / YAML / CSV / TSV / 文本）
- 目录扫描、排序与索引文件
"""

from docstore.filestore.base import BaseStore
from docstore.filestore.config import DocStoreConfigLoader
from docstore.filestore.errors import (
    AccessDenied,
    DeleteFailure,
    DocumentStoreError,
    ErrorCode,
    ParseFailure,
    ReadFailure,
    WriteFailure,
)
from docstore.filestore.factory import get_document_store, reset_document_store
from docstore.filestore.file_store import DocumentStore
from docstore.filestore.formats import NO_MATCH, FormatHandler, FormatRegistry
from docstore.filestore.native import AioFileSystem, FileSystem
from docstore.filestore.security import AccessGuard, PathResolver

__all__ = [
    "BaseStore",
    "DocumentStore",
    "PathResolver",
    "AccessGuard",
    "FormatHandler",
    "FormatRegistry",
    "NO_MATCH",
    "FileSystem",
    "AioFileSystem",
    "DocStoreConfigLoader",
    "get_document_store",
    "reset_document_store",
    "ErrorCode",
    "DocumentStoreError",
    "AccessDenied",
    "ReadFailure",
    "WriteFailure",
    "DeleteFailure",
    "ParseFailure",
]
