import os

from db.session import SessionLocal
from db.base import Base
from db.session import engine
from authentication.models import User
from authentication.repository import create_user, get_user_by_username
from authentication.security import hash_password


def ensure_admin(db, username: str, password: str) -> bool:
    if get_user_by_username(db, username) is not None:
        return False
    create_user(db, username=username, password_hash=hash_password(password), role="super_admin")
    db.commit()
    return True


def main():
    Base.metadata.create_all(bind=engine, tables=[User.__table__])
    admin_username = os.getenv("ADMIN_USERNAME", "admin")
    admin_password = os.getenv("ADMIN_PASSWORD", "admin123")

    db = SessionLocal()
    try:
        created = ensure_admin(db, admin_username, admin_password)
        print(f"Seed complete. admin_created={created} username={admin_username}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
