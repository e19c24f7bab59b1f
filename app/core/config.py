from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DATABASE_URL: str
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    PROJECT_NAME: str = "Feedback Board API"
    PROJECT_VERSION: str = "1.0.0"
    PROJECT_DESCRIPTION: str = "Collect, vote on and discuss product feedback"

    # Local dev frontends only; override in deployed environments
    CORS_ORIGIN_REGEX: str = r"^https?:\/\/(localhost|127\.0\.0\.1)(:\d{1,5})?$"

    LOG_LEVEL: str = "INFO"

    # Schema bootstrap on startup (use migrations in production)
    AUTO_CREATE_TABLES: bool = False
    SEED_CATEGORIES: bool = True

    # Pagination
    FEEDBACK_PER_PAGE: int = 15
    COMMENTS_PER_PAGE: int = 20
    MAX_PER_PAGE: int = 100

    # @mention autocomplete
    MENTION_SEARCH_MIN_LENGTH: int = 2
    MENTION_SEARCH_LIMIT: int = 10

    class Config:
        env_file = ".env"


settings = Settings()
