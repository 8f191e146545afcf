# utils/result.py
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from utils.errors import AppError, ErrorKind
from utils.db_errors import translate_db_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

HTTP_STATUS = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INSUFFICIENT_STOCK: 409,
    ErrorKind.PERSISTENCE: 500,
}


@dataclass
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[AppError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    @property
    def status(self) -> int:
        return HTTP_STATUS[self.error.kind] if self.error else 200


def attempt(fn: Callable[..., T], *args: Any, **kwargs: Any) -> Result[T]:
    """Run a dao operation and fold typed failures into a Result.

    Anything that is neither an AppError nor a database error propagates.
    """
    try:
        return Result(value=fn(*args, **kwargs))
    except AppError as e:
        return Result(error=e)
    except SQLAlchemyError as e:
        logger.exception("unhandled database error in %s", getattr(fn, "__name__", fn))
        return Result(error=translate_db_error(e))
