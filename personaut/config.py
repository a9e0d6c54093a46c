from pydantic_settings import BaseSettings
from pathlib import Path

# Get the repository root directory (parent of the personaut package)
REPO_ROOT = Path(__file__).parent.parent.absolute()

class Settings(BaseSettings):
    """Application settings."""

    # API settings
    API_HOST: str = "127.0.0.1"
    API_PORT: int = 8000
    API_RELOAD: bool = False

    # Version and environment
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Storage settings
    STORAGE_DIR: str = str(REPO_ROOT / "storage")
    LEGACY_STATE_FILE: str = str(REPO_ROOT / "storage" / "legacy_state.json")
    ATOMIC_WRITES: bool = True
    PRETTY_JSON: bool = True

    # Collections
    PERSONAS_COLLECTION: str = "personas"
    FEEDBACK_COLLECTION: str = "feedback"
    MAX_FAVORITES: int = 5
    FEEDBACK_MAX_HISTORY: int = 100

    class Config:
        env_file = ".env"

settings = Settings()
