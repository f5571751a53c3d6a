# app/api/routes_auth.py
# Registration, login and profile for shoppers and admins

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.exceptions import AuthenticationError, ConflictError, ValidationError
from app.core.security import create_access_token, verify_password
from app.crud import user as crud_user
from app.db.deps import get_current_user, get_db, require_admin
from app.models.models import User, UserRole
from app.schemas.schemas import AuthResponse, ProfileResponse, UserLogin, UserOut, UserRegister
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


def _create_account(db: Session, data: UserRegister, role: UserRole) -> User:
    if len(data.password) < settings.PASSWORD_MIN_LENGTH:
        raise ValidationError(f"Password must be at least {settings.PASSWORD_MIN_LENGTH} characters")

    if crud_user.get_user_by_username_or_email(db, data.username, data.email):
        raise ConflictError("Username or email already exists")

    user = crud_user.create_user(db, data.username, data.email, data.password, role=role)
    logger.info(f"Created {role.value} account {user.id} ({user.username})")
    return user


def _auth_response(message: str, user: User) -> dict:
    return {
        "message": message,
        "token": create_access_token(user.id, user.role.value),
        "user": UserOut.model_validate(user),
    }


def _login(db: Session, data: UserLogin, role: UserRole) -> User:
    identifier = data.identifier
    if not identifier or not data.password:
        raise ValidationError("Email/username and password are required")

    user = crud_user.get_user_by_identifier(db, identifier, role)
    if not user or not verify_password(data.password, user.password):
        label = "admin credentials" if role == UserRole.admin else "credentials"
        raise AuthenticationError(f"Invalid {label}")
    return user


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: UserRegister, db: Session = Depends(get_db)):
    user = _create_account(db, data, UserRole.user)
    return _auth_response("User registered successfully", user)


@router.post("/login", response_model=AuthResponse)
def login(data: UserLogin, db: Session = Depends(get_db)):
    user = _login(db, data, UserRole.user)
    return _auth_response("Login successful", user)


@router.post("/admin/login", response_model=AuthResponse)
def admin_login(data: UserLogin, db: Session = Depends(get_db)):
    user = _login(db, data, UserRole.admin)
    return _auth_response("Admin login successful", user)


@router.post("/admin/create", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def create_admin(
    data: UserRegister,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Create another admin account (admins only)"""
    user = _create_account(db, data, UserRole.admin)
    logger.info(f"Admin {admin.id} created admin account {user.id}")
    return _auth_response("Admin account created successfully", user)


@router.get("/profile", response_model=ProfileResponse)
def get_profile(user: User = Depends(get_current_user)):
    return {"user": user}
