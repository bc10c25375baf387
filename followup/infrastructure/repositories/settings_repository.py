from __future__ import annotations

from followup.infrastructure.repositories.base import BaseRepository


class SettingsRepository(BaseRepository):
    def get(self, db) -> dict | None:
        row = db.execute("SELECT * FROM settings ORDER BY id LIMIT 1").fetchone()
        return dict(row) if row else None

    def save(self, db, *, pcp_email: str | None, pcp_name: str | None) -> dict:
        current = self.get(db)
        if current:
            db.execute(
                """
                UPDATE settings
                SET pcp_email = ?, pcp_name = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
                """,
                (pcp_email, pcp_name, current["id"]),
            )
            settings_id = int(current["id"])
        else:
            cursor = db.execute(
                """
                INSERT INTO settings (pcp_email, pcp_name)
                VALUES (?, ?)
                RETURNING id
                """,
                (pcp_email, pcp_name),
            )
            settings_id = self.inserted_id(cursor)
        return {"id": settings_id, "pcp_email": pcp_email, "pcp_name": pcp_name}
