"""
Result type returned by wallet and game services.

Expected rejections (insufficient funds, betting closed, duplicate bet...) come
back as failed results carrying an error code from ``core.error_codes``.
Infrastructure faults are not wrapped and propagate as exceptions.

    result = place_bet(user, "red", Decimal("10"))
    if result:
        bet = result.value
    else:
        return Response({"error": result.error, "code": result.error_code}, status=400)
"""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    success: bool
    value: Optional[T] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def ok(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: str, code: Optional[str] = None) -> "Result[T]":
        return cls(success=False, error=error, error_code=code)

    def __bool__(self) -> bool:
        return self.success

    def unwrap(self) -> T:
        """Return the value, raising ValueError when the result is a failure."""
        if not self.success:
            raise ValueError(f"Cannot unwrap failed result: {self.error}")
        return self.value  # type: ignore[return-value]
