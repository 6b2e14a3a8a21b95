"""
Audit trail for quotes, orders, sales and stock.

Every write made by a service is recorded in the audit_log collection:
- Append-only (entries are never modified or deleted)
- Attributed (operator id, or "client" for the public confirmation link)
- Detailed (old and new values of each changed field)
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from core.store import AUDIT_LOG, DocumentStore
from utils.timezone import now_utc
from utils.user_context import get_current_operator_or_none

ANONYMOUS = "anonymous"

_DEFAULT_EXCLUDED = frozenset({"updated_at", "revision"})


class AuditAction(Enum):
    """Type of change made to an entity."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def compute_changes(
    old: dict[str, Any],
    new: dict[str, Any],
    exclude_fields: set[str] | frozenset[str] | None = None,
) -> dict[str, dict[str, Any]]:
    """
    Field-level diff between two document states.

    Args:
        old: Previous document
        new: New document
        exclude_fields: Keys to ignore (defaults to updated_at and revision)

    Returns:
        {field: {"old": ..., "new": ...}} for each changed top-level key.
    """
    exclude = _DEFAULT_EXCLUDED if exclude_fields is None else exclude_fields
    return {
        key: {"old": old.get(key), "new": new.get(key)}
        for key in sorted(set(old) | set(new))
        if key not in exclude and old.get(key) != new.get(key)
    }


class AuditLogger:
    """
    Writes audit entries to the document store.

    Pass documents as model_dump(mode="json") so Decimals and datetimes
    are already JSON strings.

    Usage:
        audit = AuditLogger(store)

        audit.log_change(
            entity_type="quote",
            entity_id=quote.id,
            action=AuditAction.UPDATE,
            changes=compute_changes(old_doc, new_doc),
        )
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    def log_change(
        self,
        entity_type: str,
        entity_id: str,
        action: AuditAction,
        changes: dict[str, Any],
        user_id: str | None = None,
    ) -> None:
        """
        Append an audit entry.

        Args:
            entity_type: "quote", "order", "sale" or "product"
            entity_id: Id of the entity
            action: CREATE, UPDATE or DELETE
            changes: {"created": doc} for CREATE, field diff for UPDATE
            user_id: Acting user; defaults to the current operator
        """
        if user_id is None:
            operator = get_current_operator_or_none()
            user_id = operator.id if operator else ANONYMOUS

        self.store.insert(AUDIT_LOG, {
            "id": uuid4().hex,
            "user_id": user_id,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "action": action.value,
            "changes": changes,
            "created_at": now_utc().isoformat(),
        })
