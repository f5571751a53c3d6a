import logging
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from app.core.config import settings
from app.core.security import hash_password
from app.db.session import Base
from app.models.models import CartItem, User, UserRole  # noqa: F401  (register tables)
from app.models.order import Order  # noqa: F401
from app.models.product import Product  # noqa: F401

logger = logging.getLogger("database")


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created/verified")


def seed_admin(session_factory: sessionmaker) -> bool:
    """Create the default admin account if it does not exist yet."""
    db = session_factory()
    try:
        exists = db.query(User.id).filter(User.username == settings.ADMIN_USERNAME).first()
        if exists:
            return False
        db.add(User(
            username=settings.ADMIN_USERNAME,
            email=settings.ADMIN_EMAIL,
            password=hash_password(settings.ADMIN_PASSWORD),
            role=UserRole.admin,
        ))
        db.commit()
        logger.info(f"Admin user created (username: {settings.ADMIN_USERNAME})")
        return True
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(engine: Engine, session_factory: sessionmaker) -> None:
    create_tables(engine)
    if settings.SEED_ADMIN:
        seed_admin(session_factory)
