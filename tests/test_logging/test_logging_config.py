"""
日志配置测试
"""

import logging
import logging.handlers

import pytest

from docstore.logging_config import setup_logging, setup_logging_from_config
from docstore.models.filestore import LoggingConfig


@pytest.fixture(autouse=True)
def restore_root_logger():
    """移除测试中添加的处理器并恢复级别"""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        if type(handler) in (logging.StreamHandler, logging.handlers.RotatingFileHandler):
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


class TestSetupLogging:
    """测试日志初始化"""

    def test_console_only(self):
        root = setup_logging("debug")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_rotating_file(self, tmp_path):
        log_file = tmp_path / "logs" / "docstore.log"
        root = setup_logging("INFO", log_file=str(log_file), max_bytes=1024, backup_count=2)

        file_handlers = [h for h in root.handlers if isinstance(h, logging.handlers.RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].maxBytes == 1024
        assert file_handlers[0].backupCount == 2

        logging.getLogger("docstore.test").info("hello from test")
        file_handlers[0].flush()
        assert "hello from test" in log_file.read_text(encoding="utf-8")

    def test_from_config(self, tmp_path):
        config = LoggingConfig(level="warning", file=str(tmp_path / "store.log"))
        root = setup_logging_from_config(config)
        assert root.level == logging.WARNING
        assert len(root.handlers) == 2

    def test_invalid_level(self):
        with pytest.raises(AttributeError):
            setup_logging("LOUD")
