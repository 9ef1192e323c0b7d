"""
目录索引文件

index.txt   每行 "name mtime36 size36"，名称以 / 结尾表示目录；
            兼容旧格式 "F|D name mtime36 size36"
index.txtl  列式格式：头部 "columns: name, mtimeMs.36, size.36"，"---" 之后为数据行

索引不是权威数据，仅用于在不做原生目录扫描的情况下列举目录
"""

import logging
import re
from typing import Iterable, List, Tuple

from docstore.models.filestore import DocumentStat

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"

IndexEntries = List[Tuple[str, DocumentStat]]

# index.txtl 列名 -> DocumentStat 字段
_COLUMN_FIELDS = {
    "name": "name",
    "mtimeMs": "mtime_ms",
    "atimeMs": "atime_ms",
    "ctimeMs": "ctime_ms",
    "btimeMs": "btime_ms",
    "size": "size",
}

_LEGACY_TYPE_RE = re.compile(r"^([FD]) (.+)$")


def to_base36(value: float) -> str:
    """非负数编码为 base-36（小数部分截断）"""
    number = int(value)
    if number < 0:
        raise ValueError(f"Cannot pack negative value: {value}")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def from_base36(text: str) -> int:
    return int(text, 36)


def _make_stat(name: str, mtime_ms: float = 0, size: int = 0, **extra) -> DocumentStat:
    is_dir = name.endswith("/")
    return DocumentStat(
        mtime_ms=mtime_ms,
        size=size,
        is_directory=is_dir,
        is_file=not is_dir,
        **extra
    )


def parse_index_txt(text: str) -> IndexEntries:
    """解析 index.txt"""
    entries: IndexEntries = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        tokens = line.rsplit(None, 2)
        if len(tokens) < 3:
            entries.append((tokens[0], _make_stat(tokens[0])))
            continue

        name, mtime, size = tokens
        legacy = _LEGACY_TYPE_RE.match(name)
        if legacy:
            kind, name = legacy.groups()
            if kind == "D" and not name.endswith("/"):
                name += "/"

        try:
            stat = _make_stat(name, from_base36(mtime), from_base36(size))
        except ValueError:
            logger.debug(f"Skipping malformed index line: {line!r}")
            continue
        entries.append((name, stat))
    return entries


def parse_index_txtl(text: str) -> IndexEntries:
    """解析 index.txtl（列式索引）"""
    lines = text.splitlines()
    try:
        separator = next(i for i, line in enumerate(lines) if line.strip() == "---")
    except StopIteration:
        # 没有头部，按 index.txt 处理
        return parse_index_txt(text)

    columns: List[str] = ["name", "mtimeMs.36", "size.36"]
    for line in lines[:separator]:
        if line.strip().startswith("columns:"):
            columns = [c.strip() for c in line.split(":", 1)[1].split(",") if c.strip()]

    entries: IndexEntries = []
    for line in lines[separator + 1:]:
        line = line.strip()
        if not line:
            continue
        tokens = line.rsplit(None, len(columns) - 1)
        if len(tokens) != len(columns):
            logger.debug(f"Skipping malformed index row: {line!r}")
            continue

        values = {}
        try:
            for column, token in zip(columns, tokens):
                key, _, encoding = column.partition(".")
                field = _COLUMN_FIELDS.get(key)
                if field is None:
                    continue
                if field == "name":
                    values["name"] = token
                elif encoding == "36":
                    values[field] = from_base36(token)
                else:
                    values[field] = float(token)
        except ValueError:
            logger.debug(f"Skipping malformed index row: {line!r}")
            continue

        name = values.pop("name", tokens[0])
        entries.append((name, _make_stat(name, **values)))
    return entries


def parse_index(filename: str, text: str) -> IndexEntries:
    """按索引文件名选择解析器"""
    if filename.endswith(".txtl"):
        return parse_index_txtl(text)
    return parse_index_txt(text)


def serialize_index(entries: Iterable[Tuple[str, DocumentStat]]) -> str:
    """序列化为 index.txt 格式"""
    lines = []
    for name, stat in entries:
        if stat.is_directory and not name.endswith("/"):
            name += "/"
        lines.append(f"{name} {to_base36(stat.mtime_ms)} {to_base36(stat.size)}")
    return "\n".join(lines)


__all__ = [
    "IndexEntries",
    "to_base36",
    "from_base36",
    "parse_index_txt",
    "parse_index_txtl",
    "parse_index",
    "serialize_index",
]
