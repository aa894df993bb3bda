from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List, Optional

class Settings(BaseSettings):
    # Application
    APP_NAME: str = "ShipTrack"
    APP_PORT: int = 9300
    DEBUG: bool = False
    SECRET_KEY: str = "shiptrack-secret-key-change-in-production"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 8
    
    # Database
    DATABASE_URL: str = "sqlite:///./shiptrack.db"
    # Test users work against their own database
    TEST_DATABASE_URL: str = "sqlite:///./shiptrack_test.db"
    
    # Admin accounts (emails always treated as admin)
    ADMIN_EMAILS: List[str] = []
    
    # Mail relay
    RELAY_URL: Optional[str] = "http://localhost:5000"
    RELAY_TIMEOUT_SECONDS: float = 10.0
    PORTAL_URL: str = "http://localhost:3000"
    
    # Attachments
    SHIPMENT_ATTACHMENT_MAX_BYTES: int = 1024 * 1024
    TRAINING_ATTACHMENT_MAX_BYTES: int = 2 * 1024 * 1024
    
    class Config:
        env_file = ".env"
        extra = "ignore"

@lru_cache()
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
