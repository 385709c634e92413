"""
Uniform success/error envelope returned by every result-form token operation.

The throwing forms are thin adapters over these values: ``unwrap`` raises a
TokenException carrying the same message, code and cause, and
``unwrap_or_none`` is the permissive adapter used where the throwing form
reports failure as ``None``.
"""

from typing import Any, Generic, Literal, TypeGuard, TypeVar, Union

from pydantic import BaseModel, ConfigDict

from src.tokens.enums import ErrorCode, ResultStatus
from src.tokens.exceptions import TokenException

T = TypeVar("T")


class ErrorDetail(BaseModel):
    code: ErrorCode
    message: str
    cause: BaseException | None = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Success(BaseModel, Generic[T]):
    status: Literal[ResultStatus.SUCCESS] = ResultStatus.SUCCESS
    data: T

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class Failure(BaseModel):
    status: Literal[ResultStatus.ERROR] = ResultStatus.ERROR
    error: ErrorDetail

    model_config = ConfigDict(frozen=True)


Result = Union[Success[Any], Failure]


def ok(data: T) -> Success[T]:
    return Success(data=data)


def fail(code: ErrorCode, message: str, cause: BaseException | None = None) -> Failure:
    return Failure(error=ErrorDetail(code=code, message=message, cause=cause))


def from_exception(exc: TokenException) -> Failure:
    return fail(exc.code, exc.message or exc.code.value, exc.cause)


def is_success(result: Success[T] | Failure) -> TypeGuard[Success[T]]:
    return result.status == ResultStatus.SUCCESS


def is_error(result: Success[Any] | Failure) -> TypeGuard[Failure]:
    return result.status == ResultStatus.ERROR


def unwrap(result: Success[T] | Failure) -> T:
    """
    Return the data of a successful result or raise its error.

    Raises:
        TokenException: with the wrapped error's message and code; the
            original failure is attached as ``cause`` and chained.
    """
    if is_success(result):
        return result.data

    error = result.error  # type: ignore[union-attr]
    raise TokenException(error.code, error.message, error.cause) from error.cause


def unwrap_or_none(result: Success[T] | Failure) -> T | None:
    if is_success(result):
        return result.data
    return None
