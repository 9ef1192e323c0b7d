"""
格式处理链

按扩展名选择编解码器：
- .json        格式化 JSON（缩进 2）
- .jsonl       每行一个 JSON 值
- .yaml/.yml   YAML
- .csv/.tsv    带类型解码的分隔表格（数字样式的单元格转为数字）
- 其他（含 .txt） 原始文本

处理器按注册顺序尝试，第一个非 NO_MATCH 的结果生效。
使用方可以追加自定义处理器而不修改存储本身
"""

import io
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

import pandas as pd
import yaml

from docstore.filestore.errors import ParseFailure, ReadFailure
from docstore.filestore.native import AioFileSystem, FileSystem

logger = logging.getLogger(__name__)


class _NoMatch:
    """处理器不接受该操作时返回的哨兵"""

    def __repr__(self) -> str:
        return "NO_MATCH"

    def __bool__(self) -> bool:
        return False


NO_MATCH = _NoMatch()

_INT_RE = re.compile(r"^[+-]?\d+$")
_NUMBER_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


# ===== 编解码函数 =====

def decode_value(value: Any) -> Any:
    """
    解码表格单元格

    数字样式的字符串转为 int / float，其余去掉首尾空白后原样返回
    """
    text = f"{value}".strip()
    if _INT_RE.match(text):
        return int(text)
    if _NUMBER_RE.match(text):
        return float(text)
    return text


def decode_json(text: str, **opts) -> Any:
    return json.loads(text)


def encode_json(data: Any, indent: int = 2, **opts) -> str:
    """序列化为 JSON；看起来像 JSON 对象 / 数组的字符串先解析"""
    if isinstance(data, str):
        stripped = data.strip()
        if (stripped.startswith("{") and stripped.endswith("}")) or \
                (stripped.startswith("[") and stripped.endswith("]")):
            try:
                data = json.loads(stripped)
            except ValueError:
                pass
    return json.dumps(data, indent=indent, ensure_ascii=False)


def decode_jsonl(text: str, **opts) -> List[Any]:
    return [json.loads(line) for line in text.split("\n") if line.strip()]


def encode_jsonl(data: Iterable[Any], **opts) -> str:
    return "".join(json.dumps(item, ensure_ascii=False) + "\n" for item in data)


def decode_yaml(text: str, **opts) -> Any:
    return yaml.safe_load(text)


def encode_yaml(data: Any, **opts) -> str:
    return yaml.safe_dump(data, allow_unicode=True, sort_keys=False)


def decode_table(text: str, delimiter: str = ",", quote: str = '"', **opts) -> List[dict]:
    """解析分隔表格为记录列表（首行为列名）"""
    if not text.strip():
        return []
    try:
        df = pd.read_csv(
            io.StringIO(text),
            sep=delimiter,
            quotechar=quote,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError:
        return []
    return [
        {str(col): decode_value(value) for col, value in row.items()}
        for row in df.to_dict(orient="records")
    ]


def encode_table(data: Iterable[dict], delimiter: str = ",", quote: str = '"', eol: str = "\n", **opts) -> str:
    """记录列表序列化为分隔表格"""
    # object 列保留单元格原样，缺失单元格写为空串
    df = pd.DataFrame(list(data), dtype=object)
    if df.empty and not len(df.columns):
        return ""
    return df.to_csv(sep=delimiter, quotechar=quote, lineterminator=eol, index=False)


def decode_text(text: str, delimiter: str = "", **opts) -> Any:
    """原始文本；指定分隔符时拆分为列表"""
    if not delimiter:
        return text
    return text.split(delimiter)


def encode_text(data: Any, delimiter: str = "\n", **opts) -> str:
    if isinstance(data, (list, tuple)):
        return delimiter.join(f"{item}" for item in data)
    if isinstance(data, bytes):
        return data.decode("utf-8")
    return f"{data}"


# ===== 处理器与处理链 =====

@dataclass
class FormatHandler:
    """
    单个格式处理器

    按扩展名或谓词匹配；decode / encode 为纯函数（文本 <-> 数据）
    """

    name: str
    extensions: Tuple[str, ...] = ()
    decode: Optional[Callable[..., Any]] = None
    encode: Optional[Callable[..., str]] = None
    predicate: Optional[Callable[[str], bool]] = None
    empty: Callable[[], Any] = lambda: None
    options: Optional[dict] = None

    def matches(self, ext: str) -> bool:
        if self.predicate is not None:
            return self.predicate(ext)
        return ext in self.extensions


def default_handlers() -> List[FormatHandler]:
    """内置处理链，最后一个是兜底的原始文本处理器"""
    return [
        FormatHandler("json", (".json",), decode_json, encode_json),
        FormatHandler("jsonl", (".jsonl",), decode_jsonl, encode_jsonl, empty=list),
        FormatHandler("yaml", (".yaml", ".yml"), decode_yaml, encode_yaml),
        FormatHandler("csv", (".csv",), decode_table, encode_table, empty=list,
                      options={"delimiter": ","}),
        FormatHandler("tsv", (".tsv",), decode_table, encode_table, empty=list,
                      options={"delimiter": "\t"}),
        FormatHandler("text", (), decode_text, encode_text, predicate=lambda ext: True,
                      empty=str),
    ]


class FormatRegistry:
    """
    格式处理注册表

    有序的处理器列表（责任链）：加载 / 保存时依次尝试，第一个匹配的处理器生效

    示例:
        >>> registry = FormatRegistry()
        >>> registry.register(FormatHandler("md", (".md",), decode_text, encode_text), first=True)
    """

    def __init__(
        self,
        handlers: Optional[List[FormatHandler]] = None,
        fs: Optional[FileSystem] = None,
        encoding: str = "utf-8"
    ):
        """
        初始化注册表

        Args:
            handlers: 处理器列表（默认使用内置处理链）
            fs: 原生文件系统
            encoding: 文本编码
        """
        self.handlers = list(handlers) if handlers is not None else default_handlers()
        self.fs = fs or AioFileSystem()
        self.encoding = encoding

    def register(self, handler: FormatHandler, first: bool = False) -> None:
        """
        注册处理器

        Args:
            handler: 处理器
            first: 是否放到链首（优先于内置处理器）
        """
        if first:
            self.handlers.insert(0, handler)
        else:
            self.handlers.append(handler)

    def find(self, ext: str, capability: str = "decode") -> Optional[FormatHandler]:
        for handler in self.handlers:
            if getattr(handler, capability) is not None and handler.matches(ext):
                return handler
        return None

    async def load(self, path: str, ext: str, soft_error: bool = False, **opts) -> Any:
        """
        按处理链加载文件

        Args:
            path: 原生文件路径（调用方保证文件存在）
            ext: 扩展名
            soft_error: 解析失败时返回空值而不是抛出异常

        Returns:
            解析结果；没有处理器匹配时返回 NO_MATCH

        Raises:
            ParseFailure: 内容与格式不符且 soft_error 为 False
            ReadFailure: 原生读取失败（如路径是目录）
        """
        handler = self.find(ext, "decode")
        if handler is None:
            return NO_MATCH

        try:
            text = await self.fs.read_text(path, self.encoding)
        except UnicodeDecodeError as e:
            return self._parse_failed(path, handler, e, soft_error)
        except OSError as e:
            raise ReadFailure(path, e) from e

        try:
            return handler.decode(text, **{**(handler.options or {}), **opts})
        except Exception as e:
            return self._parse_failed(path, handler, e, soft_error)

    @staticmethod
    def _parse_failed(path: str, handler: FormatHandler, error: Exception, soft_error: bool) -> Any:
        if soft_error:
            logger.debug(f"Soft parse error in {path} ({handler.name}): {error}")
            return handler.empty()
        raise ParseFailure(path, handler.name, error) from error

    async def save(self, path: str, data: Any, ext: str, **opts) -> Any:
        """
        按处理链保存文件

        Returns:
            写入的文本；没有处理器匹配时返回 NO_MATCH
        """
        handler = self.find(ext, "encode")
        if handler is None:
            return NO_MATCH

        text = handler.encode(data, **{**(handler.options or {}), **opts})
        await self.fs.write_text(path, text, self.encoding)
        return text


__all__ = [
    "NO_MATCH",
    "FormatHandler",
    "FormatRegistry",
    "default_handlers",
    "decode_value",
    "decode_json",
    "encode_json",
    "decode_jsonl",
    "encode_jsonl",
    "decode_yaml",
    "encode_yaml",
    "decode_table",
    "encode_table",
    "decode_text",
    "encode_text",
]
