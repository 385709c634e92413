from typing import Any

from src.core.errors.exceptions import CoreException
from src.tokens.enums import ErrorCode


class TokenException(CoreException):
    """
    The single error type raised by the throwing token operations.

    Attributes:
        code: Machine-checkable error code from the closed ErrorCode set
        message: Human readable description, never containing key material
        cause: The original failure (usually a PyJWT exception), if any
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        cause: BaseException | None = None,
        additional_info: dict[str, Any] | None = None,
    ):
        super().__init__(message, additional_info)
        self.code = code
        self.cause = cause

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code.value!r}, message={self.message!r})"
