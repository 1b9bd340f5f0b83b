"""Error strings and the optional process-wide last-error slot.

The builder and the printer report failures through ``Outcome`` values. Callers
that prefer a single shared diagnostic channel can use the helpers here: the API
layer records every failure it returns, and the most recent one can be read back
with ``last_error()``. The slot is overwritten by each new failure and is not
synchronized across threads.
"""

from typing import Optional

from .result import ErrorCode, Failure, Outcome

_ERROR_STRINGS = {
    ErrorCode.NONE: "No error",
    ErrorCode.OUT_OF_MEMORY: "Out of memory",
    ErrorCode.INTERNAL: "Internal error",
    ErrorCode.IO: "Input/output error",
    ErrorCode.CALLBACK: "Callback error",
    ErrorCode.TOKENIZER: "Tokenizer error",
}

_last_error: Optional[Failure] = None


def error_string(code: ErrorCode) -> str:
    """Return the canonical human-readable string for an error code."""
    return _ERROR_STRINGS[code]


def set_last_error(failure: Optional[Failure]) -> None:
    """Record ``failure`` as the most recent error (``None`` clears it)."""
    global _last_error
    _last_error = failure


def record(outcome: Outcome) -> Outcome:
    """Store the failure of ``outcome`` (if any) and hand the outcome back."""
    if outcome.failure is not None:
        set_last_error(outcome.failure)
    return outcome


def last_error() -> Optional[Failure]:
    return _last_error


def last_error_code() -> ErrorCode:
    """Code of the most recent failure, ``ErrorCode.NONE`` if there was none."""
    return _last_error.code if _last_error is not None else ErrorCode.NONE


def clear_last_error() -> None:
    set_last_error(None)
