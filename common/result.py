"""
UMC Media Hub - Result Convention
==================================
Every engine operation returns a Result instead of raising domain errors,
so routes never need per-call try/except.
"""

import functools
from dataclasses import dataclass
from typing import Any, Optional

from common.exceptions import RentalError, TransportError, raise_http


@dataclass
class Result:
    success: bool
    value: Any = None
    error: Optional[RentalError] = None

    @classmethod
    def ok(cls, value: Any = None) -> "Result":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: RentalError) -> "Result":
        return cls(success=False, error=error)

    @property
    def message(self) -> str:
        return self.error.message if self.error else ""

    @property
    def code(self) -> Optional[str]:
        return self.error.code if self.error else None


def as_result(func):
    """
    Wrap a service method so it returns Result.

    Domain errors become failed results. TransportError is re-raised
    untouched: transport failures belong to the caller.
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Result:
        try:
            return Result.ok(func(*args, **kwargs))
        except TransportError:
            raise
        except RentalError as e:
            return Result.fail(e)
    return wrapper


def unwrap(result: Result, db=None):
    """Route helper: commit and return the value, or roll back and raise HTTP."""
    if result.success:
        if db is not None:
            db.commit()
        return result.value
    if db is not None:
        db.rollback()
    raise_http(result.error)
