"""
Application configuration.
All settings are loaded from environment variables.
Use env.example as a reference for required variables.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    FAL_KEY has no default value. When it is missing the app still starts,
    logs a warning, and every generation request fails with a 500.
    """

    # ===========================================
    # APPLICATION
    # ===========================================
    # CORS: comma-separated (e.g. http://localhost:3000,https://studio.example.com). Empty = default list in code.
    cors_origins: str = ""

    # ===========================================
    # IMAGE GENERATION - PROVIDER SELECTION
    # ===========================================
    image_provider: str = "fal"

    # ===========================================
    # FAL API (Provider: fal)
    # ===========================================
    fal_key: str = ""  # Get from https://fal.ai/dashboard/keys
    fal_queue_url: str = "https://queue.fal.run"
    fal_text_to_image_model: str = "fal-ai/nano-banana"
    fal_image_edit_model: str = "fal-ai/nano-banana/edit"
    fal_timeout: float = 120.0  # whole request: submit + polling + result fetch
    fal_poll_interval: float = 1.0

    # ===========================================
    # IMAGE GENERATION - COMMON SETTINGS
    # ===========================================
    # Total attempts per mode. Editing gets 3 (2 retries), text-to-image 1.
    edit_retry_max_attempts: int = 3
    text_to_image_retry_max_attempts: int = 1
    retry_delay_seconds: float = 1.0
    output_format: str = "png"
    # Uploads above this are rejected with 413.
    max_upload_size_mb: int = 10
    # Data URIs above this length are only logged as a warning.
    inline_image_warn_bytes: int = 1_500_000

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("fal_key")
    @classmethod
    def strip_fal_key(cls, v: str) -> str:
        """Whitespace-only keys count as missing."""
        return (v or "").strip()

    @field_validator("edit_retry_max_attempts", "text_to_image_retry_max_attempts")
    @classmethod
    def validate_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("retry max attempts must be at least 1")
        return v

    @property
    def fal_key_configured(self) -> bool:
        return bool(self.fal_key)

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
