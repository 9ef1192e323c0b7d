"""
文件系统文档存储

以本地目录为根的文档存储：按扩展名编解码、目录扫描、索引文件、子存储
"""

import copy
import logging
from typing import Any, List, Optional, Sequence, Tuple

from docstore.filestore.base import NOT_LOADED, BaseStore, IndexEntriesInput
from docstore.filestore.errors import DeleteFailure, WriteFailure
from docstore.filestore.formats import NO_MATCH, FormatRegistry
from docstore.filestore.indexing import parse_index, serialize_index
from docstore.filestore.native import AioFileSystem, FileSystem
from docstore.filestore.security import AccessGuard, PathResolver
from docstore.models.filestore import (
    AccessLevel,
    DirectoryIndex,
    DocStoreConfig,
    DocumentEntry,
    DocumentStat,
)

logger = logging.getLogger(__name__)

INDEX_FILE = "index.txt"


class DocumentStore(BaseStore):
    """
    文件系统文档存储

    所有 URI 相对虚拟根目录（cwd + root）；文件内容按扩展名选择格式处理器

    示例:
        >>> store = DocumentStore(root="data")
        >>> await store.connect()
        >>> await store.save_document("users/alice.json", {"name": "Alice"})
        >>> await store.load_document("users/alice.json")
        {'name': 'Alice'}
    """

    def __init__(
        self,
        root: Optional[str] = None,
        cwd: Optional[str] = None,
        config: Optional[DocStoreConfig] = None,
        formats: Optional[FormatRegistry] = None,
        access_guard: Optional[AccessGuard] = None,
        fs: Optional[FileSystem] = None,
        predefined: Optional[Sequence[Tuple[str, Any]]] = None
    ):
        """
        初始化文档存储

        Args:
            root: 虚拟根目录（默认使用配置中的 root）
            cwd: 工作目录（默认使用配置中的 cwd）
            config: 存储配置
            formats: 格式处理链（默认使用内置处理链）
            access_guard: 访问控制（默认拒绝离开根目录的路径）
            fs: 原生文件系统（默认 AioFileSystem）
            predefined: connect 时补齐的 (uri, 内容) 列表
        """
        self.config = config or DocStoreConfig()
        resolver = PathResolver(
            cwd=cwd or self.config.cwd,
            root=root if root is not None else self.config.root,
            clamp=not self.config.strict_root,
        )
        super().__init__(resolver, access_guard or AccessGuard(resolver, self.config.config_files))

        self.encoding = self.config.encoding
        self.fs: FileSystem = fs or AioFileSystem()
        self.formats = formats or FormatRegistry(fs=self.fs, encoding=self.encoding)
        self.index_files = list(self.config.index_files)
        self.predefined = list(predefined or [])

    # ===== 生命周期 =====

    async def connect(self) -> None:
        """
        确保根目录存在，并补齐预定义文档

        Raises:
            WriteFailure: 根目录无法创建
        """
        location = self.location()
        try:
            await self.fs.mkdir(location, recursive=True)
        except OSError as e:
            raise WriteFailure(location, e) from e
        self.connected = True

        for uri, value in self.predefined:
            stat = await self.stat_document(uri)
            if not stat.exists:
                await self.save_document(uri, value)
                logger.debug(f"Seeded predefined document: {uri}")

        logger.info(f"DocumentStore connected at {location}")

    async def disconnect(self) -> None:
        await super().disconnect()
        logger.info(f"DocumentStore disconnected from {self.location()}")

    # ===== 文档操作 =====

    async def stat_document(self, uri: str) -> DocumentStat:
        path = self.location(uri)
        try:
            if not await self.fs.exists(path):
                return DocumentStat(error="Document not found")
            return await self.fs.stat(path)
        except OSError as e:
            return DocumentStat(error=str(e))

    async def load_document(
        self,
        uri: str,
        default_value: Any = "",
        soft_error: bool = False,
        **opts
    ) -> Any:
        """
        加载文档（按扩展名选择格式）

        Args:
            uri: 文档 URI
            default_value: 文档不存在时的返回值
            soft_error: 解析失败时返回格式的空值而不是抛出异常
            **opts: 传给格式处理器的选项

        Returns:
            解析后的内容；不存在时返回 default_value

        Raises:
            AccessDenied: 无读取权限
            ParseFailure: 内容与格式不符
        """
        return await self.load_document_as(
            self.extname(uri), uri, default_value=default_value, soft_error=soft_error, **opts
        )

    async def load_document_as(
        self,
        ext: str,
        uri: str,
        default_value: Any = "",
        soft_error: bool = False,
        **opts
    ) -> Any:
        """
        按指定格式加载文档

        目录与不存在的文档一样返回 default_value

        Args:
            ext: 扩展名（含点，如 ".json"）
            uri: 文档 URI

        Returns:
            解析后的内容；没有处理器接受时返回 False

        Raises:
            ParseFailure: 内容与格式不符且 soft_error 为 False
            ReadFailure: 原生读取失败
        """
        await self.ensure_access(uri, AccessLevel.READ)
        key = await self.resolve(uri)
        stat = await self.stat_document(key)
        if not stat.exists or stat.is_directory:
            logger.debug(f"Document not found, using default: {key}")
            return default_value

        result = await self.formats.load(self.location(key), ext, soft_error=soft_error, **opts)
        self.meta[key] = stat
        self.data.setdefault(key, NOT_LOADED)
        if result is NO_MATCH:
            return False
        return result

    async def _build_path(self, uri: str) -> None:
        """创建 uri 的父目录"""
        parent = self.location(await self.resolve(uri, ".."))
        try:
            await self.fs.mkdir(parent, recursive=True)
        except OSError as e:
            raise WriteFailure(parent, e) from e

    async def save_document(self, uri: str, document: Any, **opts) -> bool:
        """
        保存文档（整体替换）

        父目录不存在时自动创建

        Args:
            uri: 文档 URI
            document: 文档内容
            **opts: 传给格式处理器的选项

        Returns:
            是否写入；没有处理器接受时返回 False

        Raises:
            AccessDenied: 无写入权限
            WriteFailure: 写入失败
        """
        await self.ensure_access(uri, AccessLevel.WRITE)
        await self._build_path(uri)

        key = await self.resolve(uri)
        location = self.location(key)
        try:
            result = await self.formats.save(location, document, self.extname(key), **opts)
        except OSError as e:
            raise WriteFailure(location, e) from e
        if result is NO_MATCH:
            return False

        self._remember(key, await self.stat_document(key))
        logger.debug(f"Saved document: {key}")
        return True

    async def write_document(self, uri: str, chunk: str) -> bool:
        """
        追加原始文本块（不经过格式处理器）

        Raises:
            AccessDenied: 无写入权限
            WriteFailure: 追加失败
        """
        await self.ensure_access(uri, AccessLevel.WRITE)
        await self._build_path(uri)

        key = await self.resolve(uri)
        location = self.location(key)
        try:
            await self.fs.append_text(location, chunk, self.encoding)
        except OSError as e:
            raise WriteFailure(location, e) from e

        if key in self.meta:
            self.meta[key] = await self.stat_document(key)
        return True

    async def drop_document(self, uri: str) -> bool:
        """
        删除文档或空目录

        Returns:
            删除后文档是否已不存在；一开始就不存在时返回 False

        Raises:
            AccessDenied: 无删除权限
            DeleteFailure: 目录非空，或原生删除失败
        """
        await self.ensure_access(uri, AccessLevel.DELETE)
        key = await self.resolve(uri)
        stat = await self.stat_document(key)
        if not stat.exists:
            return False

        location = self.location(key)
        if stat.is_directory:
            if self._cached_children(key):
                raise DeleteFailure(location, "Directory is not empty, delete its documents first")
            remove = self.fs.rmdir
        else:
            remove = self.fs.unlink

        try:
            await remove(location)
        except FileNotFoundError:
            logger.debug(f"Document already removed: {key}")
        except OSError as e:
            raise DeleteFailure(location, str(e)) from e

        removed = not (await self.stat_document(key)).exists
        if removed:
            self._forget(key)
            logger.debug(f"Dropped document: {key}")
        return removed

    # ===== 目录 =====

    async def list_dir(self, uri: str = ".", depth: int = 0, skip_stat: bool = False) -> List[DocumentEntry]:
        """
        列出一层目录内容

        单个条目 stat 失败时记录在该条目的 stat.error 中，不影响其他条目。
        索引文件（config.index_files）不作为条目列出。
        排序：目录在前，文件在后，每组内按名称升序

        Args:
            uri: 目录 URI
            depth: 写入条目的层级
            skip_stat: 只使用目录扫描得到的类型信息

        Returns:
            条目列表：目录在前，名称升序

        Raises:
            AccessDenied: 无读取权限
            OSError: 目录不存在或不可读
        """
        await self.ensure_access(uri, AccessLevel.READ)
        key = await self.resolve(uri)
        location = self.location(key)

        entries = []
        for name, is_dir in await self.fs.readdir(location):
            if not is_dir and name in self.index_files:
                continue
            if skip_stat:
                stat = DocumentStat(is_directory=is_dir, is_file=not is_dir)
            else:
                try:
                    stat = await self.fs.stat(self.location(key, name))
                except OSError as e:
                    logger.debug(f"Cannot stat {name} in {key}: {e}")
                    stat = DocumentStat(is_directory=is_dir, error=str(e))
            entries.append(DocumentEntry(
                name=name + "/" if is_dir else name,
                path=self.normalize(key, name),
                depth=depth,
                stat=stat,
            ))

        entries.sort(key=lambda e: (not e.is_directory, e.name))
        return entries

    async def _read_index(self, uri: str) -> Optional[DirectoryIndex]:
        for name in self.index_files:
            location = self.location(uri, name)
            if await self.fs.exists(location):
                text = await self.fs.read_text(location, self.encoding)
                return DirectoryIndex(entries=parse_index(name, text))
        return None

    async def save_index(self, uri: str = ".", entries: IndexEntriesInput = None) -> bool:
        """
        把目录元数据写入 index.txt

        Args:
            uri: 目录 URI
            entries: 显式条目（DocumentEntry 或 (名称, DocumentStat)）；
                为 None 时原生扫描目录（不含索引文件本身）

        Raises:
            AccessDenied: 无写入权限
            WriteFailure: 写入失败
        """
        await self.ensure_access(uri, AccessLevel.WRITE)
        key = await self.resolve(uri)

        rows: List[Tuple[str, DocumentStat]] = []
        if entries is None:
            for entry in await self.list_dir(key):
                self.meta[entry.path] = entry.stat
                self.data.setdefault(entry.path, NOT_LOADED)
                rows.append((entry.name, entry.stat))
        else:
            for item in entries:
                if isinstance(item, DocumentEntry):
                    rows.append((item.name, item.stat))
                else:
                    rows.append((item[0], item[1]))

        index_uri = self.normalize(key, INDEX_FILE)
        location = self.location(index_uri)
        try:
            await self.fs.mkdir(self.location(key), recursive=True)
            await self.fs.write_text(location, serialize_index(rows), self.encoding)
        except OSError as e:
            raise WriteFailure(location, e) from e

        self._remember(index_uri, await self.stat_document(index_uri))
        logger.debug(f"Saved index for {key}: {len(rows)} entries")
        return True

    def extract(self, uri: str) -> "DocumentStore":
        """
        以 uri 为根创建子存储

        子存储共享配置，拥有独立的缓存（复制父存储中位于 uri 之下的 meta 条目）
        """
        key = self.resolve_sync(uri)
        resolver = self.resolver.extract(key)

        guard = copy.copy(self.access_guard)
        guard.resolver = resolver
        guard.config_files = set(self.access_guard.config_files)

        child = self.__class__(
            root=resolver.root,
            cwd=resolver.cwd,
            config=self.config,
            formats=FormatRegistry(self.formats.handlers, fs=self.fs, encoding=self.encoding),
            access_guard=guard,
            fs=self.fs,
        )
        child.resolver = resolver

        prefix = "" if key == "." else key.rstrip("/") + "/"
        for cached, stat in self.meta.items():
            if prefix and not cached.startswith(prefix):
                continue
            rel = cached[len(prefix):]
            if rel:
                child._remember(rel, stat.model_copy())
        child.connected = self.connected
        return child


__all__ = [
    "DocumentStore",
]
