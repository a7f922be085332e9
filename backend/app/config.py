# app/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = "Account Lifecycle API"
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Database URL lives in app.core.db; this only toggles table creation on startup
    db_generate_schemas: bool = _env_flag("DB_GENERATE_SCHEMAS")

    # Token signing
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret")  # Use a strong secret in production
    jwt_alg: str = os.getenv("JWT_ALG", "HS256")
    # 0 means session tokens never expire
    session_token_expire_minutes: int = int(os.getenv("SESSION_TOKEN_EXPIRE_MINUTES", "1440"))
    reset_token_expire_minutes: int = int(os.getenv("RESET_TOKEN_EXPIRE_MINUTES", "11"))

    # Verification codes
    verification_code_length: int = int(os.getenv("VERIFICATION_CODE_LENGTH", "6"))
    verification_code_ttl_minutes: int = int(os.getenv("VERIFICATION_CODE_TTL_MINUTES", "10"))
    verification_purge_interval_seconds: int = int(os.getenv("VERIFICATION_PURGE_INTERVAL_SECONDS", "60"))

    # Account policy
    # Unverified accounts may log in unless this is switched on
    require_active_login: bool = _env_flag("REQUIRE_ACTIVE_LOGIN")
    # Dummy mode: return generated verification codes in API responses (never enable in production)
    expose_verification_codes: bool = _env_flag("EXPOSE_VERIFICATION_CODES")

    # Base URL used to build password reset links
    public_base_url: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    # Outbound mail: "console" (log only), "smtp" or "http"
    notifier_backend: str = os.getenv("NOTIFIER_BACKEND", "console")
    mail_from: str = os.getenv("MAIL_FROM", "noreply@example.com")
    smtp_host: str | None = os.getenv("SMTP_HOST")
    smtp_port: int = int(os.getenv("SMTP_PORT", "587"))
    smtp_username: str | None = os.getenv("SMTP_USERNAME")
    smtp_password: str | None = os.getenv("SMTP_PASSWORD")
    smtp_use_tls: bool = _env_flag("SMTP_USE_TLS", "true")
    mail_api_url: str | None = os.getenv("MAIL_API_URL")
    mail_api_key: str | None = os.getenv("MAIL_API_KEY")

settings = Settings()  # Instantiate configuration
