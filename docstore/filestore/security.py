"""
路径解析与访问控制

PathResolver 把调用方给出的 URI 规范化为相对虚拟根目录的路径，
AccessGuard 在任何原生文件操作之前执行读 / 写 / 删除权限检查
"""

import logging
import os
from pathlib import Path, PurePath
from typing import Iterable, Optional, Union

from docstore.filestore.errors import AccessDenied
from docstore.models.filestore import AccessLevel

logger = logging.getLogger(__name__)

PARENT = ".."


class PathResolver:
    """
    虚拟路径解析器

    所有 URI 使用 / 分隔，相对虚拟根目录。
    超出根目录的 .. 默认被截断（饱和在根目录），不会报错

    示例:
        >>> resolver = PathResolver(cwd="/srv", root="data")
        >>> resolver.normalize("a//b/./c/")
        'a/b/c/'
        >>> resolver.absolute("users/alice.json")
        '/srv/data/users/alice.json'
    """

    def __init__(
        self,
        cwd: Optional[str] = None,
        root: str = ".",
        clamp: bool = True
    ):
        """
        初始化路径解析器

        Args:
            cwd: 进程级工作目录（默认当前目录）
            root: 相对 cwd 的虚拟根目录
            clamp: 是否把超出根目录的 .. 截断在根目录
        """
        self.cwd = os.path.abspath(cwd or os.getcwd())
        self.root = root or "."
        self.clamp = clamp

    def normalize(self, *segments: str) -> str:
        """
        规范化路径片段

        - 用 / 连接所有片段，折叠空片段和重复分隔符
        - 按字面解析 . 和 ..
        - 开头的 / 表示虚拟根目录，被去掉
        - 结尾的 / 保留（表示目录）

        Returns:
            规范化后的 URI，完全折叠时返回 "."
        """
        joined = "/".join(str(s) for s in segments if s is not None)
        trailing = joined.endswith("/")

        stack = []
        for part in joined.replace("\\", "/").split("/"):
            if part in ("", "."):
                continue
            if part == PARENT:
                if stack and stack[-1] != PARENT:
                    stack.pop()
                elif not self.clamp:
                    stack.append(PARENT)
                continue
            stack.append(part)

        result = "/".join(stack)
        if not result:
            return "."
        if trailing:
            result += "/"
        return result

    def resolve_sync(self, *segments: str) -> str:
        """
        把 URI 片段组合为相对根目录的 URI

        以 / 开头的片段表示从虚拟根目录重新开始
        """
        start = 0
        for i, segment in enumerate(segments):
            if segment and str(segment).startswith("/"):
                start = i
        return self.normalize(*segments[start:])

    async def resolve(self, *segments: str) -> str:
        """resolve_sync 的异步版本（为远程根目录预留）"""
        return self.resolve_sync(*segments)

    def absolute(self, *segments: str) -> str:
        """
        拼接 cwd + root + 规范化片段，得到文件系统路径

        第一个片段开头的 / 表示虚拟空间的根，而不是操作系统的根
        """
        parts = [self.cwd.rstrip("/") or "/"]
        root = self.normalize(self.root)
        if root != ".":
            parts.append(root.rstrip("/"))
        if segments:
            path = self.resolve_sync(*segments)
            if path != ".":
                parts.append(path)
        return "/".join(parts).replace("//", "/")

    def location(self, *segments: str) -> str:
        """与 absolute 相同，但经过原生 path 解析（处理跨平台分隔符）"""
        path = self.resolve_sync(*segments) if segments else "."
        return os.path.normpath(Path(self.cwd, self.normalize(self.root), path).absolute())

    def relative(self, path: str, start: Optional[str] = None) -> str:
        """
        计算原生路径相对根目录（或 start）的路径

        分隔符统一为 /
        """
        base = start or self.location()
        return PurePath(os.path.relpath(os.path.abspath(path), base)).as_posix()

    def basename(self, path: str, suffix: Union[str, bool, None] = None) -> str:
        """
        获取路径最后一段

        Args:
            path: 路径
            suffix: 要去掉的后缀；为 True 时去掉检测到的扩展名

        Returns:
            基名，目录保留结尾的 /
        """
        if not path:
            return ""
        if path == "/":
            return "/"

        if path.endswith("/"):
            return path.rstrip("/").rsplit("/", 1)[-1] + "/"

        name = path.rsplit("/", 1)[-1]
        if suffix is True:
            ext = self._ext_of(name)
            if ext:
                name = name[:-len(ext)]
        elif isinstance(suffix, str) and suffix and name != suffix and name.endswith(suffix):
            name = name[:-len(suffix)]
        return name

    def dirname(self, path: str) -> str:
        """获取父目录（以 / 结尾），根目录映射到自身"""
        if path == "/":
            return "/"
        stripped = path.rstrip("/")
        if not stripped:
            return "/" if path.startswith("/") else "."
        idx = stripped.rfind("/")
        if idx < 0:
            return "."
        return stripped[:idx + 1]

    def extname(self, path: str) -> str:
        """获取小写扩展名（含点），目录和无扩展名返回空字符串"""
        if not path or path.endswith("/"):
            return ""
        return self._ext_of(path.rsplit("/", 1)[-1]).lower()

    @staticmethod
    def _ext_of(name: str) -> str:
        # .gitignore 这类点文件没有扩展名
        idx = name.rfind(".")
        if idx <= 0:
            return ""
        return name[idx:]

    def extract(self, uri: str) -> "PathResolver":
        """以 uri 为新根目录创建独立的解析器"""
        root = self.normalize(self.root, self.resolve_sync(uri))
        return PathResolver(cwd=self.cwd, root=root.rstrip("/") + "/", clamp=self.clamp)


class AccessGuard:
    """
    访问控制

    默认策略：拒绝解析后以 .. 开头（试图离开虚拟根目录）的路径，
    配置文件白名单中的文件名除外（可在任意层级访问）。
    子类可以替换为真正的权限模型（ACL、用户上下文等）
    """

    LEVELS = tuple(level.value for level in AccessLevel)

    def __init__(
        self,
        resolver: PathResolver,
        config_files: Optional[Iterable[str]] = None
    ):
        """
        初始化访问控制

        Args:
            resolver: 路径解析器
            config_files: 允许在任意层级访问的文件名
        """
        self.resolver = resolver
        self.config_files = set(config_files if config_files is not None else ["llm.config.js"])

    @classmethod
    def validate_level(cls, level: Union[str, AccessLevel]) -> str:
        """
        验证访问级别

        Raises:
            ValueError: 级别不是 r / w / d
        """
        value = level.value if isinstance(level, AccessLevel) else level
        if value not in cls.LEVELS:
            raise ValueError("\n".join([
                "Access level must be one of [r, w, d]",
                "r = read",
                "w = write",
                "d = delete",
            ]))
        return value

    async def ensure_access(self, uri: str, level: Union[str, AccessLevel] = AccessLevel.READ) -> None:
        """
        检查访问权限

        Args:
            uri: 文档 URI
            level: 访问级别

        Raises:
            AccessDenied: 无访问权限
            ValueError: 访问级别无效
        """
        level = self.validate_level(level)

        # 禁止特殊字符
        if any(char in uri for char in ("\x00", "\n", "\r")):
            raise AccessDenied(uri, level, "Invalid characters in URI")

        if self.resolver.basename(uri) in self.config_files:
            return

        path = self.resolver.resolve_sync(uri)
        if path == PARENT or path.startswith(PARENT + "/"):
            logger.debug(f"Access denied: {uri} ({level})")
            raise AccessDenied(uri, level)


__all__ = [
    "PathResolver",
    "AccessGuard",
]
