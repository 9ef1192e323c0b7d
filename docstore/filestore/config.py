"""
文档存储配置加载器

从 YAML 文件加载配置，支持 .env 与 DOCSTORE_* 环境变量覆盖
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import ValidationError

from docstore.models.filestore import DocStoreConfig

logger = logging.getLogger(__name__)


class DocStoreConfigLoader:
    """
    文档存储配置加载器

    配置文件不存在或损坏时使用默认配置
    """

    SECTION = "docstore"
    ENV_PREFIX = "DOCSTORE_"
    DEFAULT_CONFIG_PATH = Path("config/docstore.yaml")

    @classmethod
    def find_config_file(cls) -> Optional[Path]:
        """
        查找配置文件

        按以下顺序查找：
        1. ./config/docstore.yaml
        2. ./docstore.yaml
        3. ~/.config/docstore/docstore.yaml
        """
        possible_paths = [
            cls.DEFAULT_CONFIG_PATH,
            Path("docstore.yaml"),
            Path("~/.config/docstore/docstore.yaml").expanduser(),
        ]
        for path in possible_paths:
            if path.exists():
                return path
        return None

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> DocStoreConfig:
        """
        加载配置

        Args:
            config_path: 配置文件路径（默认按搜索顺序查找）

        Returns:
            DocStoreConfig 配置对象
        """
        load_dotenv()

        if config_path is None:
            config_path = cls.find_config_file()

        data: Dict[str, Any] = {}
        if config_path is not None and Path(config_path).exists():
            try:
                data = cls._load_from_yaml(Path(config_path))
            except (OSError, yaml.YAMLError) as e:
                # 配置文件损坏，使用默认配置
                logger.warning(f"Cannot read config file {config_path}, using defaults: {e}")
                data = {}

        merged = cls._override_from_env(data)
        try:
            return DocStoreConfig(**merged)
        except ValidationError as e:
            logger.warning(f"Invalid docstore configuration, using defaults: {e}")
            return DocStoreConfig()

    @classmethod
    def _load_from_yaml(cls, config_path: Path) -> Dict[str, Any]:
        """读取 YAML 中的 docstore 段"""
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict) or not isinstance(data.get(cls.SECTION), dict):
            return {}
        return dict(data[cls.SECTION])

    @classmethod
    def _override_from_env(cls, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        从环境变量覆盖配置

        支持嵌套配置，使用 __ 分隔层级，例如：
        DOCSTORE_ROOT=data
        DOCSTORE_LOGGING__LEVEL=DEBUG
        """
        result = dict(config_dict)

        for env_key, env_value in os.environ.items():
            if not env_key.startswith(cls.ENV_PREFIX):
                continue
            parts = env_key[len(cls.ENV_PREFIX):].lower().split("__")

            current = result
            for part in parts[:-1]:
                if not isinstance(current.get(part), dict):
                    current[part] = {}
                current = current[part]
            current[parts[-1]] = cls._parse_env_value(env_value)

        return result

    @staticmethod
    def _parse_env_value(value: str) -> Any:
        """
        解析环境变量值

        依次尝试布尔值、整数、浮点数，否则返回字符串
        """
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        return value

    @classmethod
    def save_default_config(cls, output_path: Optional[Path] = None) -> Path:
        """
        保存默认配置到文件

        Args:
            output_path: 输出文件路径

        Returns:
            写入的文件路径
        """
        if output_path is None:
            output_path = cls.DEFAULT_CONFIG_PATH
        output_path = Path(output_path)

        default_config = {cls.SECTION: DocStoreConfig().model_dump()}

        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False, sort_keys=False)
        return output_path


__all__ = [
    "DocStoreConfigLoader",
]
