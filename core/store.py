"""
Document store boundary.

The pricing core never persists anything itself. Services hand plain JSON
documents to a DocumentStore supplied by the host application (the
production deployment uses a hosted document database).

Every stored document carries an integer "revision". replace() is a
compare-and-swap on that revision, which serializes concurrent writers on
the same quote, order or product: the loser gets ConcurrentUpdateError and
must reload. transaction() groups several writes so that either all of
them land or none do.
"""

from contextlib import AbstractContextManager
from typing import Any, Protocol

QUOTES = "quotes"
ORDERS = "orders"
SALES = "sales"
PRODUCTS = "products"
AUDIT_LOG = "audit_log"


class DocumentStore(Protocol):
    """Persistence collaborator for quotes, orders, sales and products."""

    def get(self, collection: str, document_id: str) -> dict[str, Any] | None:
        """Document by id, or None."""
        ...

    def insert(self, collection: str, document: dict[str, Any]) -> str:
        """
        Store a new document under document["id"] and return that id.

        Raises:
            ValueError: If a document with that id already exists
        """
        ...

    def replace(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
        expected_revision: int,
    ) -> int:
        """
        Overwrite a document if it is still at expected_revision.

        Returns:
            The new revision (expected_revision + 1)

        Raises:
            NotFoundError: If the document does not exist
            ConcurrentUpdateError: If the stored revision differs
        """
        ...

    def latest_number(self, collection: str, prefix: str) -> str | None:
        """Highest "number" field starting with prefix, or None."""
        ...

    def transaction(self) -> AbstractContextManager[None]:
        """All writes inside the block commit together or not at all."""
        ...
