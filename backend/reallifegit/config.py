"""
Application configuration
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Data layer settings"""

    # Application
    APP_NAME: str = "RealLifeGit"
    APP_VERSION: str = "0.1.0"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"

    # Pagination
    DEFAULT_PAGE_LIMIT: int = 50
    MAX_PAGE_LIMIT: int = 100

    # Sample data
    SEED_ON_INIT: bool = True
    SEED_PROJECT_COUNT: int = 2
    SEED_RANDOM_SEED: int = 42

    # Placeholder actor until an auth context exists
    CURRENT_USER: str = "current-user"

    # Reject branches created from a commit of another project
    ENFORCE_BRANCH_PROJECT_SCOPE: bool = False

    # Analytics
    CONTRIBUTION_WINDOW_DAYS: int = 365

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
