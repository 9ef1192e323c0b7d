"""
docstore - 异步文件系统文档存储
"""

from docstore.filestore import DocumentStore
from docstore.logging_config import setup_logging

__version__ = "0.1.0"

__all__ = [
    "DocumentStore",
    "setup_logging",
]
