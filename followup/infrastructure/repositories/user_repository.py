from __future__ import annotations

from typing import Dict, List

from followup.infrastructure.repositories.base import BaseRepository


ROLE_SALES = "VENDAS"
ROLE_PCP = "PCP"

DEFAULT_USERS: Dict[str, Dict[str, str]] = {
    ROLE_SALES: {"name": "Vendedor Padrao", "email": "vendas@demo.com"},
    ROLE_PCP: {"name": "PCP Padrao", "email": "pcp@demo.com"},
}


class UserRepository(BaseRepository):
    def get(self, db, user_id: int) -> dict | None:
        row = db.execute("SELECT * FROM users WHERE id = ? LIMIT 1", (user_id,)).fetchone()
        return dict(row) if row else None

    def get_first_by_role(self, db, role: str) -> dict | None:
        row = db.execute(
            """
            SELECT *
            FROM users
            WHERE role = ?
            ORDER BY id
            LIMIT 1
            """,
            (role,),
        ).fetchone()
        return dict(row) if row else None

    def get_or_create_default(self, db, role: str) -> dict:
        """Return the first user with ``role``, creating the stock user if none exists."""
        user = self.get_first_by_role(db, role)
        if user:
            return user
        if role not in DEFAULT_USERS:
            raise ValueError(f"Sem usuario padrao para o perfil {role}.")
        defaults = DEFAULT_USERS[role]
        cursor = db.execute(
            """
            INSERT INTO users (name, email, role)
            VALUES (?, ?, ?)
            RETURNING id
            """,
            (defaults["name"], defaults["email"], role),
        )
        user_id = self.inserted_id(cursor)
        return {"id": user_id, "name": defaults["name"], "email": defaults["email"], "role": role}

    def list_all(self, db) -> List[dict]:
        rows = db.execute("SELECT id, name, email, role FROM users ORDER BY id").fetchall()
        return [dict(row) for row in rows]

    def update_name(self, db, user_id: int, name: str) -> None:
        db.execute("UPDATE users SET name = ? WHERE id = ?", (name, user_id))
