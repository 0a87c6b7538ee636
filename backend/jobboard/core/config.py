from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    DATABASE_URL: str = "sqlite:///./jobboard.db"

    # JWT Authentication
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    RESET_TOKEN_EXPIRE_MINUTES: int = 30
    OAUTH_HANDOFF_EXPIRE_MINUTES: int = 15

    # Session cookie mirrored for server-side page checks
    AUTH_COOKIE_NAME: str = "auth-token"
    AUTH_COOKIE_SECURE: bool = False

    # Google sign-in
    GOOGLE_CLIENT_ID: str = ""
    GOOGLE_TOKENINFO_URL: str = "https://oauth2.googleapis.com/tokeninfo"
    OAUTH_TIMEOUT: float = 10.0

    # File storage (CVs, photos, logos)
    STORAGE_DIR: str = "./storage"
    PUBLIC_FILES_URL: str = "/files"

    # Password reset mail
    FRONTEND_URL: str = "http://localhost:3000"
    SMTP_HOST: str = ""
    SMTP_PORT: int = 25
    SMTP_FROM: str = "no-reply@jobboard.local"

    # Which company fields count towards a complete profile: "basic" or "extended"
    COMPANY_COMPLETION_RULES: str = "basic"

    # Application
    APP_NAME: str = "JobBoard"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"
    BACKEND_CORS_ORIGINS: str = (
        "http://localhost:3000,"
        "http://127.0.0.1:3000"
    )


settings = Settings()
