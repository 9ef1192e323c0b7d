"""
文档存储错误定义

统一的异常类与错误代码。
"不存在" 不是异常：由 DocumentStat.exists=False 或默认值表示。
"""

from typing import Any, Dict, Optional


# ===== 错误代码定义 =====

class ErrorCode:
    """标准错误代码"""

    ACCESS_DENIED = "ACCESS_DENIED"
    READ_FAILED = "READ_FAILED"
    WRITE_FAILED = "WRITE_FAILED"
    DELETE_FAILED = "DELETE_FAILED"
    PARSE_FAILED = "PARSE_FAILED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# ===== 自定义异常 =====

class DocumentStoreError(Exception):
    """
    文档存储异常基类

    携带结构化的错误代码与详情
    """

    def __init__(
        self,
        message: str,
        code: str = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class AccessDenied(DocumentStoreError, PermissionError):
    """访问被拒绝（在任何原生文件操作之前抛出）"""

    def __init__(self, uri: str, level: str, reason: str = "No access outside of the db container"):
        self.uri = uri
        self.level = level
        super().__init__(
            message=f"Access denied to {uri} (level: {level}): {reason}",
            code=ErrorCode.ACCESS_DENIED,
            details={"uri": uri, "level": level, "reason": reason}
        )


class ReadFailure(DocumentStoreError, OSError):
    """读取失败（目录、权限等原生错误）"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(
            message=f"Failed to read document from {path}: {cause}",
            code=ErrorCode.READ_FAILED,
            details={"path": path, "error": str(cause)}
        )


class WriteFailure(DocumentStoreError, OSError):
    """写入 / 追加 / 创建目录失败"""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(
            message=f"Failed to write document to {path}: {cause}",
            code=ErrorCode.WRITE_FAILED,
            details={"path": path, "error": str(cause)}
        )


class DeleteFailure(DocumentStoreError, OSError):
    """删除失败（非空目录或 unlink 出错）"""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(
            message=f"Failed to delete document at {path}: {reason}",
            code=ErrorCode.DELETE_FAILED,
            details={"path": path, "reason": reason}
        )


class ParseFailure(DocumentStoreError, ValueError):
    """内容与期望格式不符"""

    def __init__(self, path: str, fmt: str, cause: Exception):
        self.path = path
        self.format = fmt
        self.cause = cause
        super().__init__(
            message=f"Failed to parse {path} as {fmt or 'text'}: {cause}",
            code=ErrorCode.PARSE_FAILED,
            details={"path": path, "format": fmt, "error": str(cause)}
        )


__all__ = [
    "ErrorCode",
    "DocumentStoreError",
    "AccessDenied",
    "ReadFailure",
    "WriteFailure",
    "DeleteFailure",
    "ParseFailure",
]
