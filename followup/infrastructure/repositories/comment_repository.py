from __future__ import annotations

from typing import Iterable, List

from followup.infrastructure.repositories.base import BaseRepository, chunked, placeholders


class CommentRepository(BaseRepository):
    def create(self, db, *, request_id: int, author_id: int | None, content: str) -> int:
        cursor = db.execute(
            """
            INSERT INTO comments (request_id, author_id, content)
            VALUES (?, ?, ?)
            RETURNING id
            """,
            (request_id, author_id, content),
        )
        return self.inserted_id(cursor)

    def list_for_request(self, db, request_id: int) -> List[dict]:
        rows = db.execute(
            """
            SELECT *
            FROM comments
            WHERE request_id = ?
            ORDER BY created_at ASC, id ASC
            """,
            (request_id,),
        ).fetchall()
        return self.rows_to_dicts(rows)

    def delete_for_requests(self, db, request_ids: Iterable[int]) -> None:
        ids = list(request_ids)
        for chunk in chunked(ids, 500):
            db.execute(
                f"DELETE FROM comments WHERE request_id IN ({placeholders(len(chunk))})",
                tuple(chunk),
            )
