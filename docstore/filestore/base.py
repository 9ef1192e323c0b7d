"""
文档存储基础接口

定义所有存储实现的抽象基类：
缓存（meta / data）、路径工具、访问控制契约、目录遍历与扫描
"""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Sequence, Tuple, Union

from docstore.filestore.errors import AccessDenied
from docstore.filestore.security import AccessGuard, PathResolver
from docstore.models.filestore import (
    AccessLevel,
    DirectoryIndex,
    DocumentEntry,
    DocumentStat,
    FoundDocument,
    SortKey,
    SortOrder,
)

logger = logging.getLogger(__name__)

# data 缓存中表示 "存在但未加载" 的标记
NOT_LOADED = False

# dump 中表示 "文档已不存在" 的默认值
_MISSING = object()

EntryFilter = Callable[[DocumentEntry], bool]


class BaseStore(ABC):
    """
    存储基类

    所有具体存储实现的抽象基类，定义统一的文档接口。

    缓存不是权威数据（原生文件系统才是）：
    - meta: URI -> 最近一次已知的 DocumentStat
    - data: URI -> NOT_LOADED（只记录 "已知存在"，从不缓存内容）
    保存成功后写入两者，确认删除后移除两者
    """

    def __init__(self, resolver: PathResolver, access_guard: Optional[AccessGuard] = None):
        """
        初始化存储

        Args:
            resolver: 路径解析器
            access_guard: 访问控制（默认拒绝离开根目录的路径）
        """
        self.resolver = resolver
        self.access_guard = access_guard or AccessGuard(resolver)
        self.meta: Dict[str, DocumentStat] = {}
        self.data: Dict[str, Any] = {}
        self.connected = False

    # ===== 路径工具 =====

    @property
    def cwd(self) -> str:
        return self.resolver.cwd

    @property
    def root(self) -> str:
        return self.resolver.root

    def normalize(self, *segments: str) -> str:
        return self.resolver.normalize(*segments)

    def resolve_sync(self, *segments: str) -> str:
        return self.resolver.resolve_sync(*segments)

    async def resolve(self, *segments: str) -> str:
        return await self.resolver.resolve(*segments)

    def absolute(self, *segments: str) -> str:
        return self.resolver.absolute(*segments)

    def location(self, *segments: str) -> str:
        return self.resolver.location(*segments)

    def relative(self, path: str, start: Optional[str] = None) -> str:
        return self.resolver.relative(path, start)

    def basename(self, path: str, suffix: Union[str, bool, None] = None) -> str:
        return self.resolver.basename(path, suffix)

    def dirname(self, path: str) -> str:
        return self.resolver.dirname(path)

    def extname(self, path: str) -> str:
        return self.resolver.extname(path)

    # ===== 访问控制 =====

    async def ensure_access(self, uri: str, level: Union[str, AccessLevel] = AccessLevel.READ) -> None:
        """
        检查访问权限（在任何原生文件操作之前调用）

        Raises:
            AccessDenied: 无访问权限
        """
        await self.access_guard.ensure_access(uri, level)

    # ===== 缓存 =====

    def _remember(self, uri: str, stat: DocumentStat) -> None:
        self.meta[uri] = stat
        self.data[uri] = NOT_LOADED

    def _forget(self, uri: str) -> None:
        self.meta.pop(uri, None)
        self.data.pop(uri, None)

    def _cached_children(self, uri: str) -> List[str]:
        """meta 缓存中位于目录 uri 之下的条目"""
        prefix = "" if uri in (".", "./") else uri.rstrip("/") + "/"
        return [key for key in self.meta if key.startswith(prefix) and key != uri]

    # ===== 生命周期 =====

    @abstractmethod
    async def connect(self) -> None:
        """确保根目录存在并标记为已连接"""
        pass

    async def disconnect(self) -> None:
        """释放资源（基础实现没有需要释放的资源）"""
        self.connected = False

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    # ===== 文档操作 =====

    @abstractmethod
    async def stat_document(self, uri: str) -> DocumentStat:
        """
        获取文档状态（总是查询原生层，不使用 meta 缓存）

        不会失败：错误记录在返回值的 error 字段中
        """
        pass

    @abstractmethod
    async def load_document(self, uri: str, default_value: Any = "", **opts) -> Any:
        """加载文档；不存在时返回 default_value"""
        pass

    @abstractmethod
    async def save_document(self, uri: str, document: Any, **opts) -> bool:
        """按扩展名序列化并保存文档"""
        pass

    @abstractmethod
    async def write_document(self, uri: str, chunk: str) -> bool:
        """向文档追加原始文本块"""
        pass

    @abstractmethod
    async def drop_document(self, uri: str) -> bool:
        """删除文档或空目录；不存在时返回 False"""
        pass

    async def drop(self, uris: Union[str, Sequence[str]]) -> Union[bool, List[bool]]:
        """
        删除一个或多个文档

        Args:
            uris: 单个 URI 或 URI 列表

        Returns:
            单个结果，或按输入顺序排列的结果列表（各项独立，不回滚）
        """
        if isinstance(uris, (list, tuple)):
            return [await self.drop_document(uri) for uri in uris]
        return await self.drop_document(uris)

    # ===== 目录 =====

    @abstractmethod
    async def list_dir(self, uri: str = ".", depth: int = 0, skip_stat: bool = False) -> List[DocumentEntry]:
        """列出一层目录内容（目录在前）"""
        pass

    @abstractmethod
    async def _read_index(self, uri: str) -> Optional[DirectoryIndex]:
        """读取目录索引文件；没有索引时返回 None"""
        pass

    @abstractmethod
    async def save_index(self, uri: str = ".", entries=None) -> bool:
        """把目录元数据写入 index.txt"""
        pass

    @abstractmethod
    def extract(self, uri: str) -> "BaseStore":
        """以 uri 为根创建独立的子存储"""
        pass

    async def load_index(self, uri: str = ".") -> DirectoryIndex:
        """
        解析目录索引文件

        Returns:
            DirectoryIndex，没有索引文件时 entries 为空
        """
        await self.ensure_access(uri, AccessLevel.READ)
        index = await self._read_index(await self.resolve(uri))
        return index or DirectoryIndex()

    async def read_dir(
        self,
        uri: str = ".",
        depth: int = 0,
        skip_stat: bool = False,
        filter: Optional[EntryFilter] = None,
        include_dirs: bool = False
    ) -> AsyncIterator[DocumentEntry]:
        """
        深度受限的深度优先遍历（惰性）

        - 目录存在索引文件时，条目由索引生成，不做原生扫描
        - 否则原生扫描：目录在前，子目录的后代先于当前层的文件产出
        - 目录标记只在 include_dirs 或 depth=0（平铺扫描）时产出
        - 目录不存在或不可读时该子树静默结束

        Args:
            uri: 起始目录
            depth: 最大递归深度
            skip_stat: 跳过逐个 stat
            filter: 产出前应用的过滤函数（不影响递归）
            include_dirs: 是否产出目录条目
        """
        await self.ensure_access(uri, AccessLevel.READ)
        start = await self.resolve(uri)
        async for entry in self._walk(start, depth, 0, skip_stat, filter, include_dirs):
            yield entry

    async def _walk(
        self,
        uri: str,
        depth: int,
        level: int,
        skip_stat: bool,
        filter: Optional[EntryFilter],
        include_dirs: bool
    ) -> AsyncIterator[DocumentEntry]:
        entries: List[DocumentEntry] = []
        try:
            index = await self._read_index(uri)
            if index is None:
                entries = await self.list_dir(uri, depth=level, skip_stat=skip_stat)
        except AccessDenied:
            raise
        except OSError as e:
            logger.debug(f"Cannot read directory {uri}: {e}")
            return

        if index is not None:
            for name, stat in index.entries:
                entry = DocumentEntry(name=name, path=self.normalize(uri, name), depth=level, stat=stat)
                if filter is None or filter(entry):
                    yield entry
                if entry.is_directory and level < depth:
                    async for child in self._walk(entry.path, depth, level + 1, skip_stat, filter, include_dirs):
                        yield child
            return

        for entry in entries:
            if entry.is_directory:
                if (include_dirs or depth == 0) and (filter is None or filter(entry)):
                    yield entry
                if level < depth:
                    async for child in self._walk(entry.path, depth, level + 1, skip_stat, filter, include_dirs):
                        yield child
            elif filter is None or filter(entry):
                yield entry

    async def find_stream(
        self,
        uri: str = ".",
        limit: int = -1,
        sort: Optional[Union[str, SortKey]] = SortKey.NAME,
        order: Union[str, SortOrder] = SortOrder.ASC,
        skip_stat: bool = False,
        skip_symbolic_link: bool = True,
        depth: int = 0,
        filter: Optional[EntryFilter] = None,
        include_dirs: bool = False
    ) -> AsyncIterator[FoundDocument]:
        """
        扫描目录，可排序、可限制数量

        排序需要先完整收集再截断；sort=None 时边遍历边产出

        Args:
            uri: 扫描路径
            limit: 最大条目数（-1 表示不限）
            sort: name / mtime / size，None 表示不排序
            order: asc / desc
            skip_stat: 跳过逐个 stat
            skip_symbolic_link: 忽略符号链接
            depth: 最大递归深度

        Yields:
            FoundDocument，其 file 字段为 DocumentEntry
        """
        sort_key = SortKey(sort) if sort is not None else None
        reverse = SortOrder(order) == SortOrder.DESC

        def accepted(entry: DocumentEntry) -> bool:
            return not (skip_symbolic_link and entry.stat.is_symbolic_link)

        stream = self.read_dir(uri, depth=depth, skip_stat=skip_stat, filter=filter, include_dirs=include_dirs)

        if sort_key is None:
            count = 0
            try:
                async for entry in stream:
                    if 0 <= limit <= count:
                        break
                    if accepted(entry):
                        count += 1
                        yield FoundDocument(file=entry)
            finally:
                await stream.aclose()
            return

        entries = [entry async for entry in stream if accepted(entry)]
        # 稳定排序：目录在前作为相同键的次序
        entries.sort(key=lambda e: not e.is_directory)
        entries.sort(key=self._sort_value(sort_key), reverse=reverse)
        if limit >= 0:
            entries = entries[:limit]
        for entry in entries:
            yield FoundDocument(file=entry)

    async def dump(self, target: Optional["BaseStore"] = None, depth: int = sys.maxsize, indexes: bool = True) -> int:
        """
        把全部文档复制到目标存储

        递归遍历本存储，逐个加载文档并用目标存储的编码器保存；
        indexes 为 True 时再为目标中涉及的每个目录（含祖先目录）写入 index.txt。

        Args:
            target: 目标存储，为 None 时写回自身
            depth: 最大递归深度
            indexes: 是否为目标目录生成索引文件

        Returns:
            复制的文档数量

        Raises:
            AccessDenied: 无读取或写入权限
            ParseFailure: 源文档内容与格式不符
            WriteFailure: 写入失败
        """
        target = target if target is not None else self
        entries = [
            entry async for entry in self.read_dir(".", depth=depth)
            if not entry.is_directory
        ]

        copied = 0
        directories = {"."}
        for entry in entries:
            value = await self.load_document(entry.path, default_value=_MISSING)
            if value is _MISSING:
                continue
            await target.save_document(entry.path, value)
            copied += 1

            parent = self.dirname(entry.path)
            while parent not in directories:
                directories.add(parent)
                parent = self.dirname(parent)

        if indexes:
            # 子目录先于父目录
            for directory in sorted(directories, key=lambda d: (-d.count("/"), d)):
                await target.save_index(directory)

        logger.info(f"Dumped {copied} documents from {self.root}")
        return copied

    @staticmethod
    def _sort_value(sort_key: SortKey) -> Callable[[DocumentEntry], Any]:
        if sort_key == SortKey.MTIME:
            return lambda e: e.stat.mtime_ms
        if sort_key == SortKey.SIZE:
            return lambda e: e.stat.size
        return lambda e: e.path


IndexEntriesInput = Optional[Sequence[Union[DocumentEntry, Tuple[str, DocumentStat]]]]


__all__ = [
    "NOT_LOADED",
    "BaseStore",
    "EntryFilter",
    "IndexEntriesInput",
]
