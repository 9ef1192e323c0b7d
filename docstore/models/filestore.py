"""
文档存储相关模型

定义文档存储系统的核心模型：文档状态、目录条目、目录索引与配置
"""

from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


class AccessLevel(str, Enum):
    """访问级别"""

    READ = "r"      # 读取
    WRITE = "w"     # 写入 / 追加
    DELETE = "d"    # 删除


class SortKey(str, Enum):
    """目录扫描排序键"""

    NAME = "name"
    MTIME = "mtime"
    SIZE = "size"


class SortOrder(str, Enum):
    """排序方向"""

    ASC = "asc"
    DESC = "desc"


class DocumentStat(BaseModel):
    """
    文档元数据快照

    时间戳为毫秒精度；exists 为 False 时 size 与时间戳没有意义
    """

    size: int = Field(default=0, ge=0, description="文件大小（字节）")
    atime_ms: float = Field(default=0.0, description="最后访问时间（毫秒）")
    mtime_ms: float = Field(default=0.0, description="最后修改时间（毫秒）")
    ctime_ms: float = Field(default=0.0, description="状态变更时间（毫秒）")
    btime_ms: float = Field(default=0.0, description="创建时间（毫秒，平台支持时）")

    dev: int = Field(default=0, description="设备号")
    ino: int = Field(default=0, description="inode")
    mode: int = Field(default=0, description="权限位")
    nlink: int = Field(default=0, description="硬链接数")
    uid: int = Field(default=0, description="所有者 UID")
    gid: int = Field(default=0, description="所有者 GID")
    rdev: int = Field(default=0, description="特殊设备号")
    blksize: int = Field(default=0, description="块大小")
    blocks: int = Field(default=0, description="块数量")

    is_file: bool = Field(default=False, description="是否为普通文件")
    is_directory: bool = Field(default=False, description="是否为目录")
    is_symbolic_link: bool = Field(default=False, description="是否为符号链接")
    is_block_device: bool = Field(default=False, description="是否为块设备")
    is_fifo: bool = Field(default=False, description="是否为命名管道")
    is_socket: bool = Field(default=False, description="是否为套接字")

    error: Optional[str] = Field(
        default=None,
        description="采集状态时捕获的错误（如 Document not found）"
    )

    @property
    def exists(self) -> bool:
        """文档是否存在"""
        if self.error:
            return False
        return (
            self.is_file
            or self.is_directory
            or self.is_symbolic_link
            or self.is_block_device
            or self.is_fifo
            or self.is_socket
            or self.mtime_ms > 0
        )

    class Config:
        json_schema_extra = {
            "example": {
                "size": 1024,
                "mtime_ms": 1707200000000.0,
                "is_file": True,
                "error": None
            }
        }


class DocumentEntry(BaseModel):
    """目录列举记录（仅在扫描时创建，不持久化）"""

    name: str = Field(
        ...,
        description="基名，目录以 / 结尾"
    )
    path: str = Field(
        default="",
        description="相对根目录的 URI"
    )
    depth: int = Field(
        default=0,
        ge=0,
        description="相对扫描起点的层级"
    )
    stat: DocumentStat = Field(
        default_factory=DocumentStat,
        description="文档元数据"
    )

    @property
    def is_directory(self) -> bool:
        return self.stat.is_directory or self.name.endswith("/")

    @property
    def is_file(self) -> bool:
        return not self.is_directory

    def __str__(self) -> str:
        return self.path or self.name


class FoundDocument(BaseModel):
    """find_stream 产出的包装对象"""

    file: DocumentEntry = Field(..., description="目录条目")


class DirectoryIndex(BaseModel):
    """目录索引文件解析结果"""

    entries: List[Tuple[str, DocumentStat]] = Field(
        default_factory=list,
        description="(名称, 元数据) 列表，目录名以 / 结尾"
    )

    def get(self, name: str) -> Optional[DocumentStat]:
        """按名称查找条目"""
        for entry_name, stat in self.entries:
            if entry_name == name:
                return stat
        return None


class LoggingConfig(BaseModel):
    """日志配置"""

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(
        default="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        description="日志格式"
    )
    file: Optional[str] = Field(default=None, description="日志文件路径（为空则仅输出到控制台）")
    max_bytes: int = Field(default=10 * 1024 * 1024, description="日志文件最大大小（10MB）")
    backup_count: int = Field(default=5, description="日志备份数量")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class DocStoreConfig(BaseModel):
    """文档存储配置"""

    cwd: str = Field(
        default=".",
        description="进程级工作目录（创建存储时转换为绝对路径）"
    )
    root: str = Field(
        default=".",
        description="相对 cwd 的虚拟根目录"
    )
    encoding: str = Field(
        default="utf-8",
        description="文本读写编码"
    )
    strict_root: bool = Field(
        default=False,
        description="为 True 时超出根目录的 .. 不做截断，而由访问控制拒绝"
    )
    config_files: List[str] = Field(
        default_factory=lambda: ["llm.config.js"],
        description="允许在任意层级访问的配置文件名"
    )
    index_files: List[str] = Field(
        default_factory=lambda: ["index.txtl", "index.txt"],
        description="目录索引文件名（按优先级）"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="日志配置"
    )

    @field_validator("config_files", "index_files")
    @classmethod
    def validate_basenames(cls, v: List[str]) -> List[str]:
        """文件名不能包含路径分隔符"""
        for name in v:
            if not name or "/" in name or "\\" in name:
                raise ValueError(f"Invalid file name: {name!r}")
        return v


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
