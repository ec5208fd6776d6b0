import argparse

from db.session import SessionLocal
from db.base import Base
from db.session import engine
from authentication.models import User
from authentication.repository import create_user
from authentication.security import hash_password


def main():
    parser = argparse.ArgumentParser(description="Create a directory admin account.")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--super-admin", action="store_true", help="allow managing other admins")
    args = parser.parse_args()

    if len(args.password) < 8:
        raise SystemExit("Password must be at least 8 characters")

    Base.metadata.create_all(bind=engine, tables=[User.__table__])
    db = SessionLocal()
    try:
        user = create_user(
            db,
            username=args.username,
            password_hash=hash_password(args.password),
            role="super_admin" if args.super_admin else "admin",
        )
        if user is None:
            raise SystemExit("User already exists")
        db.commit()
        print(f"Created user: {user.username} ({user.role})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
