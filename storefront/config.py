# storefront/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./storefront_carts.db"

    # Remote storefront API (delivery options, zone lookup, products)
    API_BASE_URL: str = "http://localhost:4000"
    HTTP_TIMEOUT_SECONDS: float = 5.0

    # Cart value above which guests are nudged to register
    HIGH_VALUE_CART_THRESHOLD: float = 10000
    FRONTEND_URL: str = "http://localhost:5173"

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
