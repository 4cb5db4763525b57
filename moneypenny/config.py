"""
Application Configuration — Pydantic Settings

Centralized configuration management using environment variables.
Loads from .env file automatically with sensible defaults.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    
    Priority: Environment variables > .env file > defaults
    """
    
    # === API Configuration ===
    PROJECT_NAME: str = "Moneypenny Assistant Proxy"
    
    # === CORS Configuration ===
    # Comma-separated; the first origin is the default
    ALLOWED_ORIGINS: str = "https://chatgpt.com"
    
    # === Inbound Auth ===
    # Empty disables bearer checking
    MONEYPENNY_AUTH_TOKEN: str = ""
    
    # === Pinecone Assistant Configuration ===
    PINECONE_API_KEY: str = ""
    PINECONE_API_VERSION: str = "2025-01"
    PINECONE_CONTROL_PLANE_URL: str = "https://api.pinecone.io"
    
    # === Dispatch & Caching ===
    HOST_CACHE_TTL_SECONDS: float = 300.0
    MAX_RETRIES: int = 2
    REQUEST_TIMEOUT_SECONDS: float = 30.0
    DEFAULT_CHAT_MODEL: str = "gpt-4o"
    
    # === Environment ===
    ENVIRONMENT: str = "local"  # local, preview, production
    
    # === Settings Configuration ===
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parsed ALLOWED_ORIGINS; first entry is the default origin."""
        origins = [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]
        return origins or ["*"]


# Singleton instance
settings = Settings()
