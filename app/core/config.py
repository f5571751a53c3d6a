# app/core/config.py - Storefront settings

from pydantic_settings import BaseSettings
from typing import List

class Settings(BaseSettings):
    # Auth
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    BCRYPT_ROUNDS: int = 12
    PASSWORD_MIN_LENGTH: int = 6

    # Database
    DATABASE_URL: str = "sqlite:///./storefront.db"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_ECHO: bool = False

    # Product images
    allowed_image_types: str = "image/jpeg,image/png,image/gif,image/webp"
    UPLOAD_DIR: str = "uploads"
    MAX_FILE_SIZE: int = 5 * 1024 * 1024  # 5MB
    MAX_IMAGES_PER_PRODUCT: int = 5
    MAX_IMAGE_DIMENSION: int = 2048

    # Default admin account created on startup
    SEED_ADMIN: bool = True
    ADMIN_USERNAME: str = "admin"
    ADMIN_EMAIL: str = "admin@ecommerce.com"
    ADMIN_PASSWORD: str = "admin123"

    # Frontend origins allowed to call the API
    CORS_ORIGINS: List[str] = [
        "http://localhost:8081",
        "http://127.0.0.1:8081",
        "http://localhost:8082",
        "http://127.0.0.1:8082",
    ]

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    @property
    def allowed_image_type_list(self) -> List[str]:
        return [t.strip() for t in self.allowed_image_types.split(",") if t.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False  # Allow lowercase env vars
        extra = "ignore"

settings = Settings()
