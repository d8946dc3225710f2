"""
Configuration management for ChefFlow Admin
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "ChefFlow Admin"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./chefflow.db"

    # Security
    SECRET_KEY: str = "dev-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24  # 24 hours
    MIN_PASSWORD_LENGTH: int = 6

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Default admin seeded on first start
    DEFAULT_ADMIN_EMAIL: str = "admin@chefflow.app"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_RESTAURANT_ID: str = "admin-review"
    DEFAULT_RESTAURANT_NAME: str = "Admin Review Kitchen"

    # Image storage
    UPLOAD_DIR: str = "uploads"
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10 MB
    IMAGE_MAX_DIMENSION: int = 800
    IMAGE_JPEG_QUALITY: int = 80

    # Recipes
    MAX_RECIPE_IMAGES: int = 8
    RECIPE_CACHE_TTL_SECONDS: int = 5 * 60

    # Closing checklist reset (runs at 02:00 Paris time)
    CLOSING_RESET_ENABLED: bool = True
    CLOSING_RESET_HOUR: int = 2
    CLOSING_RESET_TIMEZONE: str = "Europe/Paris"

    # Listing limits
    HANDOVER_LIST_LIMIT: int = 50
    RECENT_ACTIVITY_LIMIT: int = 10

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
