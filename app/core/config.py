import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    env: str = os.getenv("ENV", "unit-test")
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "assignments"
    jwt_algorithm: str = "HS256"
    jwt_public_key: str = "change-me"
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:5173"]

    class Config:
        env_file = None

settings = Settings()
