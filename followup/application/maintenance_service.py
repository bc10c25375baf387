from __future__ import annotations

import logging
from typing import Dict, List, Tuple

from followup.infrastructure.repositories import (
    CommentRepository,
    FollowUpRequestRepository,
    OrderRepository,
    UserRepository,
)


MOJIBAKE_MARKER = "Ã"

# Order matters: the bare marker is only replaced after every two-character pair.
MOJIBAKE_REPLACEMENTS: Tuple[Tuple[str, str], ...] = (
    ("Ã£", "ã"),
    ("Ã¡", "á"),
    ("Ã©", "é"),
    ("Ã­", "í"),
    ("Ã³", "ó"),
    ("Ãº", "ú"),
    ("Ã§", "ç"),
    ("Ã¢", "â"),
    ("Ãª", "ê"),
    ("Ã", "Á"),
)


def repair_mojibake(text: str | None) -> str | None:
    if not text or MOJIBAKE_MARKER not in text:
        return text
    for broken, fixed in MOJIBAKE_REPLACEMENTS:
        text = text.replace(broken, fixed)
    return text


class MaintenanceService:
    def __init__(
        self,
        *,
        orders: OrderRepository | None = None,
        requests: FollowUpRequestRepository | None = None,
        comments: CommentRepository | None = None,
        users: UserRepository | None = None,
    ) -> None:
        self.orders = orders or OrderRepository()
        self.requests = requests or FollowUpRequestRepository()
        self.comments = comments or CommentRepository()
        self.users = users or UserRepository()
        self._logger = logging.getLogger("followup")

    def repair_encoding(self, db) -> Dict[str, int]:
        """Rewrite UTF-8 text that was stored after being read as Latin-1."""
        counts = {"users": 0, "orders": 0, "requests": 0}

        for user in self.users.list_all(db):
            fixed = repair_mojibake(user["name"])
            if fixed != user["name"]:
                self.users.update_name(db, user["id"], fixed)
                counts["users"] += 1

        for order in self.orders.list_text_fields(db):
            client_name = repair_mojibake(order["client_name"]) or order["client_name"]
            salesperson = repair_mojibake(order["salesperson"]) or order["salesperson"]
            if client_name != order["client_name"] or salesperson != order["salesperson"]:
                self.orders.update_text_fields(db, order["id"], client_name=client_name, salesperson=salesperson)
                counts["orders"] += 1

        for request in self.requests.list_all(db):
            fixed = repair_mojibake(request["notes"])
            if fixed != request["notes"]:
                self.requests.update_notes(db, request["id"], fixed)
                counts["requests"] += 1

        db.commit()
        self._logger.info("encoding_repair_completed", extra=counts)
        return counts

    def remove_duplicate_requests(self, db) -> int:
        """Keep the first request (by id) per order and request date; delete the rest."""
        seen: set[tuple] = set()
        duplicate_ids: List[int] = []
        for request in self.requests.list_all(db):
            key = (request["order_id"], request["request_date"])
            if key in seen:
                duplicate_ids.append(int(request["id"]))
                continue
            seen.add(key)

        if duplicate_ids:
            self.comments.delete_for_requests(db, duplicate_ids)
            for request_id in duplicate_ids:
                self.requests.delete(db, request_id)
        db.commit()
        self._logger.info("duplicate_requests_removed", extra={"removed": len(duplicate_ids)})
        return len(duplicate_ids)
