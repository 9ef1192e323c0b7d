"""
DocumentStore 工厂函数

提供便捷的 DocumentStore 实例获取方法
"""

from typing import Optional

from docstore.filestore.config import DocStoreConfigLoader
from docstore.filestore.file_store import DocumentStore


# 全局单例
_global_store: Optional[DocumentStore] = None


def get_document_store(
    root: Optional[str] = None,
    force_new: bool = False
) -> DocumentStore:
    """
    获取 DocumentStore 实例（未连接）

    Args:
        root: 虚拟根目录，为 None 则使用配置文件
        force_new: 是否强制创建新实例

    Returns:
        DocumentStore 实例
    """
    global _global_store

    if force_new or _global_store is None:
        config = DocStoreConfigLoader.load()
        _global_store = DocumentStore(root=root, config=config)

    return _global_store


async def reset_document_store() -> None:
    """断开并重置全局 DocumentStore 实例"""
    global _global_store

    if _global_store is not None:
        await _global_store.disconnect()
        _global_store = None


__all__ = [
    "get_document_store",
    "reset_document_store",
]
