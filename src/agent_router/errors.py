"""
errors.py - Error Code System

Structured error taxonomy for the agent router.

Error Code Structure:
- 1xxx: Validation errors
- 3xxx: Runtime errors
- 4xxx: Storage (embedding cache) errors
- 9xxx: Third-party/External errors

Propagation:
- Cache faults (4xxx) are absorbed by the cache client and never reach callers.
- Catalog and embedding faults propagate to callers of initialize()/route().

Usage:
    from agent_router.errors import RouterError, RouterErrorCode, ErrorCategory

    raise RouterError(
        message="Router not ready",
        code=RouterErrorCode.NOT_READY,
        details={"state": "initializing"},
    )
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Error category classification."""

    VALIDATION = "VALIDATION"
    RUNTIME = "RUNTIME"
    STORAGE = "STORAGE"
    EXTERNAL = "EXTERNAL"
    UNKNOWN = "UNKNOWN"


def _infer_category_from_code(code: str) -> ErrorCategory:
    """Infer error category from error code prefix.

    Args:
        code: Error code string (e.g., "3001")

    Returns:
        Inferred ErrorCategory
    """
    if not code or len(code) < 2:
        return ErrorCategory.UNKNOWN

    category_map = {
        "1": ErrorCategory.VALIDATION,
        "3": ErrorCategory.RUNTIME,
        "4": ErrorCategory.STORAGE,
        "9": ErrorCategory.EXTERNAL,
    }
    return category_map.get(code[0], ErrorCategory.UNKNOWN)


class RouterErrorCode(str, Enum):
    """Error codes for the agent router."""

    # ==========================================================================
    # Validation Errors (1xxx)
    # ==========================================================================
    INVALID_ARGUMENT = "1001"
    INVALID_CATALOG = "1002"
    INVALID_BUILD_ID = "1003"

    # ==========================================================================
    # Runtime Errors (3xxx)
    # ==========================================================================
    NOT_READY = "3001"
    EMPTY_INDEX = "3002"
    EMBEDDING_FAILED = "3003"
    CATALOG_LOAD_FAILED = "3004"

    # ==========================================================================
    # Storage Errors (4xxx)
    # ==========================================================================
    CACHE_READ_ERROR = "4001"
    CACHE_WRITE_ERROR = "4002"
    CACHE_VALIDATION_FAILED = "4003"
    CACHE_REJECTED = "4004"

    # ==========================================================================
    # External Errors (9xxx)
    # ==========================================================================
    EXTERNAL_UNAVAILABLE = "9001"


class RouterError(Exception):
    """Base exception for agent router errors.

    Attributes:
        message: Human-readable error description
        code: Error code from RouterErrorCode
        category: Error category from ErrorCategory
        details: Additional error context dictionary
    """

    def __init__(
        self,
        message: str,
        code: Optional[RouterErrorCode] = None,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        details: Optional[dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code

        if category == ErrorCategory.UNKNOWN and code:
            category = _infer_category_from_code(code.value)

        self.category = category
        self.details = details or {}
        super().__init__(str(self))

    def __str__(self) -> str:
        code_str = self.code.value if self.code else "UNKNOWN"
        return f"[{code_str}] {self.message}"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"code={self.code.value if self.code else None!r}, "
            f"category={self.category.value!r}, "
            f"details={self.details!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary format."""
        return {
            "error": type(self).__name__,
            "message": self.message,
            "code": self.code.value if self.code else None,
            "category": self.category.value,
            "details": self.details,
        }


class CatalogLoadError(RouterError):
    """The agent catalog could not be loaded or has an unrecognized shape."""

    def __init__(self, message: str, source: Optional[str] = None, **details: Any):
        super().__init__(
            message=message,
            code=RouterErrorCode.CATALOG_LOAD_FAILED,
            details={"source": source, **details},
        )


class InvalidBuildIdError(RouterError):
    """A build id is not a 64-character lowercase hex digest (caller bug)."""

    def __init__(self, build_id: Any):
        super().__init__(
            message=f"Malformed build id: {build_id!r}",
            code=RouterErrorCode.INVALID_BUILD_ID,
            details={"build_id": build_id},
        )


class CacheValidationError(RouterError):
    """A fetched bundle is unusable. Always demoted to a cache miss."""

    def __init__(self, message: str, build_id: Optional[str] = None, **details: Any):
        super().__init__(
            message=message,
            code=RouterErrorCode.CACHE_VALIDATION_FAILED,
            details={"build_id": build_id, **details},
        )


class CacheReadError(RouterError):
    """The cache store could not be read. Treated as a cache miss."""

    def __init__(self, message: str, build_id: Optional[str] = None, **details: Any):
        super().__init__(
            message=message,
            code=RouterErrorCode.CACHE_READ_ERROR,
            details={"build_id": build_id, **details},
        )


class CacheWriteError(RouterError):
    """The cache store could not persist a bundle. Logged and ignored."""

    def __init__(
        self,
        message: str,
        build_id: Optional[str] = None,
        code: RouterErrorCode = RouterErrorCode.CACHE_WRITE_ERROR,
        **details: Any,
    ):
        super().__init__(
            message=message,
            code=code,
            details={"build_id": build_id, **details},
        )


class CacheStoreRejectedError(CacheWriteError):
    """The cache store refused a bundle (build id or dims mismatch)."""

    def __init__(self, message: str, build_id: Optional[str] = None, **details: Any):
        super().__init__(
            message=message,
            build_id=build_id,
            code=RouterErrorCode.CACHE_REJECTED,
            **details,
        )


class EmbeddingError(RouterError):
    """The embedding capability failed or returned an invalid vector."""

    def __init__(self, message: str, role: Optional[str] = None, **details: Any):
        super().__init__(
            message=message,
            code=RouterErrorCode.EMBEDDING_FAILED,
            details={"role": role, **details},
        )


class NotReadyError(RouterError):
    """route() was called before a successful initialize()."""

    def __init__(self, state: str):
        super().__init__(
            message=f"Router not ready (state: {state})",
            code=RouterErrorCode.NOT_READY,
            details={"state": state},
        )


class EmptyIndexError(RouterError):
    """The vector index holds no agents."""

    def __init__(self, message: str = "No agents available"):
        super().__init__(message=message, code=RouterErrorCode.EMPTY_INDEX)


def get_error_code_description(code: RouterErrorCode) -> str:
    """Get human-readable description for an error code."""
    descriptions = {
        RouterErrorCode.INVALID_ARGUMENT: "Invalid argument provided",
        RouterErrorCode.INVALID_CATALOG: "Agent catalog has an unrecognized shape",
        RouterErrorCode.INVALID_BUILD_ID: "Build id is not a SHA-256 hex digest",
        RouterErrorCode.NOT_READY: "Router has not been initialized",
        RouterErrorCode.EMPTY_INDEX: "No agents available",
        RouterErrorCode.EMBEDDING_FAILED: "Embedding computation failed",
        RouterErrorCode.CATALOG_LOAD_FAILED: "Agent catalog could not be loaded",
        RouterErrorCode.CACHE_READ_ERROR: "Failed to read from embedding cache",
        RouterErrorCode.CACHE_WRITE_ERROR: "Failed to write to embedding cache",
        RouterErrorCode.CACHE_VALIDATION_FAILED: "Cached bundle failed validation",
        RouterErrorCode.CACHE_REJECTED: "Embedding cache rejected the bundle",
        RouterErrorCode.EXTERNAL_UNAVAILABLE: "External service unavailable",
    }
    return descriptions.get(code, "Unknown error")


__all__ = [
    "CacheReadError",
    "CacheStoreRejectedError",
    "CacheValidationError",
    "CacheWriteError",
    "CatalogLoadError",
    "EmbeddingError",
    "EmptyIndexError",
    "ErrorCategory",
    "InvalidBuildIdError",
    "NotReadyError",
    "RouterError",
    "RouterErrorCode",
    "get_error_code_description",
]
