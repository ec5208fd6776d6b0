from sqlalchemy.orm import Session

from authentication.models import User
from models.company_user import CompanyUser
from models.requests import ClaimRequest

ADMIN_ROLES = ("admin", "super_admin")


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.query(User).filter(User.username == username).first()


def get_user_by_id(db: Session, user_id: str) -> User | None:
    return db.query(User).filter(User.id == user_id).first()


def create_user(db: Session, username: str, password_hash: str, role: str = "admin") -> User | None:
    if role not in ADMIN_ROLES:
        raise ValueError(f"Unsupported role: {role}")
    if get_user_by_username(db, username) is not None:
        return None

    user = User(
        username=username,
        password_hash=password_hash,
        role=role,
        is_super_admin=role == "super_admin",
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def list_users(db: Session, search: str | None = None, limit: int = 100) -> list[User]:
    query = db.query(User)
    if search:
        query = query.filter(User.username.ilike(f"%{search.strip()}%"))
    return query.order_by(User.username.asc()).limit(max(1, min(limit, 500))).all()


def delete_user(db: Session, username: str) -> bool:
    user = get_user_by_username(db, username)
    if user is None:
        return False

    # review history outlives the admin who wrote it
    db.query(ClaimRequest).filter(ClaimRequest.reviewed_by == user.id).update(
        {ClaimRequest.reviewed_by: None}, synchronize_session=False
    )
    db.query(CompanyUser).filter(CompanyUser.approved_by == user.id).update(
        {CompanyUser.approved_by: None}, synchronize_session=False
    )
    db.delete(user)
    db.flush()
    return True


def update_user_password(db: Session, user: User, password_hash: str) -> None:
    user.password_hash = password_hash
    db.flush()
