"""
原生文件系统能力

文档存储只通过这里的最小接口接触磁盘：
exists / mkdir / stat / readdir / unlink / rmdir / read / write / append / access
"""

import os
import stat as stat_module
from typing import List, Protocol, Tuple

import aiofiles
import aiofiles.os

from docstore.models.filestore import AccessLevel, DocumentStat


def stat_from(st: os.stat_result, is_link: bool = False) -> DocumentStat:
    """
    从 os.stat_result 构建 DocumentStat

    Args:
        st: 原生 stat 结果
        is_link: 路径本身是否为符号链接

    Returns:
        DocumentStat
    """
    mode = st.st_mode
    birth = getattr(st, "st_birthtime", None)
    return DocumentStat(
        size=st.st_size,
        atime_ms=st.st_atime * 1000,
        mtime_ms=st.st_mtime * 1000,
        ctime_ms=st.st_ctime * 1000,
        btime_ms=birth * 1000 if birth is not None else 0.0,
        dev=st.st_dev,
        ino=st.st_ino,
        mode=mode,
        nlink=st.st_nlink,
        uid=st.st_uid,
        gid=st.st_gid,
        rdev=getattr(st, "st_rdev", 0),
        blksize=getattr(st, "st_blksize", 0),
        blocks=getattr(st, "st_blocks", 0),
        is_file=stat_module.S_ISREG(mode),
        is_directory=stat_module.S_ISDIR(mode),
        is_symbolic_link=is_link,
        is_block_device=stat_module.S_ISBLK(mode),
        is_fifo=stat_module.S_ISFIFO(mode),
        is_socket=stat_module.S_ISSOCK(mode),
    )


class FileSystem(Protocol):
    """原生文件系统协议（异步）"""

    async def exists(self, path: str) -> bool:
        ...

    async def mkdir(self, path: str, recursive: bool = True) -> None:
        ...

    async def stat(self, path: str) -> DocumentStat:
        ...

    async def readdir(self, path: str) -> List[Tuple[str, bool]]:
        ...

    async def unlink(self, path: str) -> None:
        ...

    async def rmdir(self, path: str) -> None:
        ...

    async def read_text(self, path: str, encoding: str = "utf-8") -> str:
        ...

    async def write_text(self, path: str, data: str, encoding: str = "utf-8") -> None:
        ...

    async def append_text(self, path: str, data: str, encoding: str = "utf-8") -> None:
        ...

    async def access(self, path: str, level: str = "r") -> bool:
        ...


class AioFileSystem:
    """
    基于 aiofiles 的原生文件系统实现

    不做任何格式转换，也不捕获异常：OSError 原样抛给调用方
    """

    async def exists(self, path: str) -> bool:
        return await aiofiles.os.path.exists(path)

    async def mkdir(self, path: str, recursive: bool = True) -> None:
        if recursive:
            await aiofiles.os.makedirs(path, exist_ok=True)
        else:
            await aiofiles.os.mkdir(path)

    async def stat(self, path: str) -> DocumentStat:
        st = await aiofiles.os.stat(path)
        is_link = await aiofiles.os.path.islink(path)
        return stat_from(st, is_link=is_link)

    async def readdir(self, path: str) -> List[Tuple[str, bool]]:
        """
        列出目录

        Returns:
            (名称, 是否目录) 列表，顺序由原生列举决定
        """
        entries = await aiofiles.os.scandir(path)
        with entries:
            return [(entry.name, entry.is_dir()) for entry in entries]

    async def unlink(self, path: str) -> None:
        await aiofiles.os.remove(path)

    async def rmdir(self, path: str) -> None:
        await aiofiles.os.rmdir(path)

    async def read_text(self, path: str, encoding: str = "utf-8") -> str:
        async with aiofiles.open(path, "r", encoding=encoding, newline="") as f:
            return await f.read()

    async def write_text(self, path: str, data: str, encoding: str = "utf-8") -> None:
        async with aiofiles.open(path, "w", encoding=encoding, newline="") as f:
            await f.write(data)

    async def append_text(self, path: str, data: str, encoding: str = "utf-8") -> None:
        async with aiofiles.open(path, "a", encoding=encoding, newline="") as f:
            await f.write(data)

    async def access(self, path: str, level: str = "r") -> bool:
        modes = {
            AccessLevel.READ.value: os.R_OK,
            AccessLevel.WRITE.value: os.W_OK,
            AccessLevel.DELETE.value: os.R_OK | os.W_OK,
        }
        if level not in modes:
            raise ValueError(f"Unsupported access level: {level}")
        return await aiofiles.os.access(path, modes[level])


__all__ = [
    "FileSystem",
    "AioFileSystem",
    "stat_from",
]
