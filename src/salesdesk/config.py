"""Configuration for the SalesDesk backend using pydantic-settings."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _PACKAGE_DIR.parent.parent  # src/salesdesk/ → project root


class Settings(BaseSettings):
    """All backend settings, loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=str(_PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # n8n workflow webhook
    # ------------------------------------------------------------------
    n8n_webhook_url: str = ""

    # ------------------------------------------------------------------
    # Cloudinary image host
    # ------------------------------------------------------------------
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_api_base_url: str = "https://api.cloudinary.com/v1_1"
    cloudinary_folder: str = "product-images"

    # ------------------------------------------------------------------
    # Product / chat database (any SQLAlchemy URL; Postgres in production)
    # ------------------------------------------------------------------
    database_url: str = ""
    database_create_schema: bool = False

    # ------------------------------------------------------------------
    # WhatsApp vendor API
    # ------------------------------------------------------------------
    whatsapp_api_base_url: str = "https://wbuz.in/api"
    whatsapp_api_token: str = ""
    whatsapp_vendor_uid: str = ""

    # ------------------------------------------------------------------
    # LLM gateway (OpenAI-compatible chat completions)
    # ------------------------------------------------------------------
    llm_gateway_url: str = "https://ai.gateway.lovable.dev/v1"
    llm_gateway_api_key: str = ""
    llm_model: str = "google/gemini-2.5-flash"

    # ------------------------------------------------------------------
    # Outbound HTTP
    # ------------------------------------------------------------------
    http_timeout_seconds: float = 30.0

    # ------------------------------------------------------------------
    # Admin session: a single hardcoded credential pair, NOT a security
    # boundary. Set AUTH_ENABLED=false to skip the session check entirely.
    # ------------------------------------------------------------------
    auth_enabled: bool = True
    admin_username: str = "admin"
    admin_password: str = "change-me"
    session_secret: str = "dev-secret-change-in-production!!"
    session_expiry_hours: int = 24

    # ------------------------------------------------------------------
    # Inventory
    # ------------------------------------------------------------------
    low_stock_threshold: int = 5

    # ------------------------------------------------------------------
    # HTTP server
    # ------------------------------------------------------------------
    cors_allow_origins: list[str] = ["*"]
    log_level: str = "INFO"
    log_json: bool = False

    # ------------------------------------------------------------------
    # Observability: "off", "logfire" or "otel"
    # ------------------------------------------------------------------
    observability: str = "off"
    otel_service_name: str = "salesdesk-backend"
    otel_exporter_otlp_endpoint: str = "http://localhost:4318"
    otel_console_exporter: bool = False

    # ------------------------------------------------------------------
    # Per-proxy readiness
    # ------------------------------------------------------------------
    @property
    def cloudinary_configured(self) -> bool:
        return bool(
            self.cloudinary_cloud_name and self.cloudinary_api_key and self.cloudinary_api_secret
        )

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_api_token and self.whatsapp_vendor_uid)


@lru_cache
def get_settings() -> Settings:
    """Return the cached Settings singleton."""
    return Settings()
