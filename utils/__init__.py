"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, to_utc, to_local, parse_iso, add_days, deadline_utc
from utils.user_context import (
    OperatorIdentity,
    get_current_operator,
    get_current_operator_or_none,
    set_current_operator,
    clear_current_operator,
    operator_context,
)
