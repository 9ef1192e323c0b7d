"""
Pytest 配置文件

设置测试环境与异步测试工具
"""

import asyncio
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    """
    Pytest 配置钩子

    在测试收集之前设置 Python 路径
    """
    # 添加项目根目录到 Python 路径
    project_root_str = str(Path(__file__).parent.parent.resolve())
    if project_root_str not in sys.path:
        sys.path.insert(0, project_root_str)


def _collect(agen):
    """耗尽异步生成器并返回列表"""
    async def drain():
        return [item async for item in agen]
    return asyncio.run(drain())


@pytest.fixture
def run():
    """在新的事件循环中执行协程"""
    return asyncio.run


@pytest.fixture
def collect():
    """收集异步生成器的全部产出"""
    return _collect
