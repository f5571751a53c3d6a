from typing import Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session
from app.models.models import User, UserRole
from app.core.security import hash_password

def get_user_by_username_or_email(db: Session, username: str, email: str) -> Optional[User]:
    return db.query(User).filter(or_(User.username == username, User.email == email)).first()

def get_user_by_identifier(db: Session, identifier: str, role: UserRole) -> Optional[User]:
    """Login lookup: the identifier may be either the email or the username."""
    return (
        db.query(User)
        .filter(or_(User.email == identifier, User.username == identifier), User.role == role)
        .first()
    )

def create_user(db: Session, username: str, email: str, password: str, role: UserRole = UserRole.user) -> User:
    new_user = User(
        username=username,
        email=email,
        password=hash_password(password),
        role=role,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    return new_user
