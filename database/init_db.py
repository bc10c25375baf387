import os
import sys

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
if BASE_DIR not in sys.path:
    sys.path.insert(0, BASE_DIR)

from followup import create_app
from followup.db import get_db, init_db
from followup.infrastructure.repositories import UserRepository
from followup.infrastructure.repositories.user_repository import DEFAULT_USERS


app = create_app()


def seed_default_users() -> list:
    db = get_db()
    users = UserRepository()
    seeded = [users.get_or_create_default(db, role) for role in DEFAULT_USERS]
    db.commit()
    return seeded


if __name__ == "__main__":
    with app.app_context():
        init_db()
        for user in seed_default_users():
            print(f"Usuario {user['role']}: {user['name']} <{user['email']}>")
    print("Base de follow-up inicializada.")
