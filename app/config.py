import os
from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    app_name: str = "Catalog Category API"
    environment: str = os.getenv("ENVIRONMENT", "development")
    debug: bool = environment == "development"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./catalog.db")

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8000"]

    # Category tree limits
    max_tree_depth: int = 10
    reparent_batch_size: int = 100

    # Advisory thresholds, above which a move is flagged for a maintenance window
    large_child_count_threshold: int = 100
    large_descendant_count_threshold: int = 1000

    model_config = {"env_file": ".env"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
