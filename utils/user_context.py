"""Propagate the acting operator through the call stack using contextvars."""

from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass


@dataclass(frozen=True)
class OperatorIdentity:
    """Staff member performing an action. Stamped on comments and audit entries."""

    id: str
    name: str


_current_operator: ContextVar[OperatorIdentity | None] = ContextVar(
    "current_operator", default=None
)


def get_current_operator() -> OperatorIdentity:
    """
    Get the acting operator.

    Raises RuntimeError if none is set. Operator-driven code paths
    must never run anonymously.
    """
    operator = _current_operator.get()
    if operator is None:
        raise RuntimeError(
            "No operator context set. Operator actions must run inside operator_context()."
        )
    return operator


def get_current_operator_or_none() -> OperatorIdentity | None:
    """Acting operator, or None for client-facing flows."""
    return _current_operator.get()


def set_current_operator(operator: OperatorIdentity) -> None:
    _current_operator.set(operator)


def clear_current_operator() -> None:
    _current_operator.set(None)


@contextmanager
def operator_context(operator: OperatorIdentity):
    """
    Temporarily act as the given operator.

    Example:
        with operator_context(OperatorIdentity("u-1", "Marta")):
            quote_service.mark_sent(quote_id)
    """
    token = _current_operator.set(operator)
    try:
        yield operator
    finally:
        _current_operator.reset(token)
