"""
文档存储测试配置

提供测试夹具和测试工具
"""

import asyncio
import tempfile
from pathlib import Path

import pytest

from docstore.filestore import DocumentStore


@pytest.fixture
def temp_dir():
    """临时目录夹具"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_store(temp_dir):
    """创建并连接 DocumentStore 的工厂夹具"""
    def factory(root: str = ".", predefined=None, **kwargs) -> DocumentStore:
        store = DocumentStore(root=root, cwd=str(temp_dir), predefined=predefined, **kwargs)
        asyncio.run(store.connect())
        return store
    return factory


@pytest.fixture
def store(make_store):
    """已连接的 DocumentStore 夹具（根目录为临时目录）"""
    return make_store()


@pytest.fixture
def sample_csv_content():
    """示例 CSV 内容"""
    return '"Name","Age","Email"\n"John",30,"john@example.com"\n"Jane",25,"jane@example.com"'


@pytest.fixture
def sample_records():
    """示例表格记录"""
    return [
        {"Name": "John", "Age": 30, "Email": "john@example.com"},
        {"Name": "Jane", "Age": 25, "Email": "jane@example.com"},
        {"Name": "Bob", "Age": 40, "Email": "bob@example.com"},
    ]
