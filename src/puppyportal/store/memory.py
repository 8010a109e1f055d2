"""In-process tables for local development and tests."""

import logging
import uuid
from datetime import (
    datetime,
    timezone,
)
from typing import (
    Dict,
    List,
    Optional,
)

from puppyportal.store.base import (
    DataStore,
    Record,
    StoreError,
)

logger = logging.getLogger(__name__)


class MemoryStore(DataStore):
    """
    Dict-backed store applying the same filters, ordering and limits as the hosted one.

    Tables are plain lists of row dicts: ``puppies``, ``applications``, ``messages``,
    ``puppy_assignments`` (``buyer_id``/``puppy_id`` links), ``puppy_weights`` and
    ``puppy_milestones``.
    """

    def __init__(self, tables: Dict[str, List[Record]] | None = None):
        self.tables: Dict[str, List[Record]] = {
            "puppies": [],
            "applications": [],
            "messages": [],
            "puppy_assignments": [],
            "puppy_weights": [],
            "puppy_milestones": [],
        }
        for name, rows in (tables or {}).items():
            self.tables[name] = [dict(row) for row in rows]

    def list_puppies(self, status: str, limit: int) -> List[Record]:
        rows = [r for r in self.tables["puppies"] if r.get("status") == status]
        rows.sort(key=lambda r: str(r.get("ready_date") or ""))
        return [dict(r) for r in rows[:limit]]

    def list_applications(self, buyer_id: str, limit: int) -> List[Record]:
        rows = [r for r in self.tables["applications"] if r.get("buyer_id") == buyer_id]
        rows.sort(key=lambda r: str(r.get("created_at") or ""), reverse=True)
        return [dict(r) for r in rows[:limit]]

    def insert_message(self, author_id: str, author_email: Optional[str], body: str) -> None:
        if not body:
            raise StoreError("messages.body must not be empty")
        row = {
            "id": str(uuid.uuid4()),
            "author_id": author_id,
            "author_email": author_email,
            "body": body,
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        self.tables["messages"].append(row)
        logger.debug("Stored message %s from %s", row["id"], author_id)

    def get_assigned_puppy(self, buyer_id: str, puppy_id: str) -> Optional[Record]:
        assigned = any(
            r.get("buyer_id") == buyer_id and str(r.get("puppy_id")) == puppy_id
            for r in self.tables["puppy_assignments"]
        )
        if not assigned:
            return None
        for row in self.tables["puppies"]:
            if str(row.get("id")) == puppy_id:
                return dict(row)
        return None

    def list_puppy_weights(self, puppy_id: str) -> List[Record]:
        rows = [r for r in self.tables["puppy_weights"] if str(r.get("puppy_id")) == puppy_id]
        rows.sort(key=lambda r: str(r.get("measured_at") or ""))
        return [dict(r) for r in rows]

    def list_puppy_milestones(self, puppy_id: str) -> List[Record]:
        rows = [r for r in self.tables["puppy_milestones"] if str(r.get("puppy_id")) == puppy_id]
        rows.sort(key=lambda r: int(r.get("week") or 0))
        return [dict(r) for r in rows]
