"""
Application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # App
    app_name: str = "Ledgerline"
    log_level: str = "INFO"

    # Database
    database_url: str = "sqlite:///./data/db.sqlite"

    # Import analysis
    import_lookup_batch_size: int = 100  # Max fingerprint hashes per existence query
    import_preview_limit: int = 50
    import_error_preview_limit: int = 20

    # Fingerprinting: "rolling32" (short base-36 digest) or "sha256" (wide digest)
    fingerprint_hash_algorithm: str = "rolling32"

    # Recurring detection
    recurring_tolerance_days: int = 3

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    frontend_url: str = "http://localhost:5173"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
