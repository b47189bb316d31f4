"""
Configuration module for the Weekend Activity Finder backend.

Loads environment variables and validates required settings.
"""
import os
from typing import List
from dotenv import load_dotenv

# Load .env file
load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Supabase Configuration
    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    # Server-side key: the cache table is written by the backend, not by clients
    SUPABASE_SECRET_KEY: str = os.getenv("SUPABASE_SECRET_KEY", "")

    # JWT Verification - Using JWT Signing Keys (ES256 with JWKS)
    # The JWKS URL is automatically derived from SUPABASE_URL
    @property
    def SUPABASE_JWKS_URL(self) -> str:
        """Get the JWKS URL for JWT verification."""
        if not self.SUPABASE_URL:
            return ""
        return f"{self.SUPABASE_URL}/auth/v1/.well-known/jwks.json"

    # Custom access token claims carrying the numeric user id and role
    USER_ID_CLAIM: str = os.getenv("USER_ID_CLAIM", "user_id")
    USER_ROLE_CLAIM: str = os.getenv("USER_ROLE_CLAIM", "user_role")

    # Google Gemini API
    GOOGLE_API_KEY: str = os.getenv("GOOGLE_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    MODEL_TEMPERATURE: float = float(os.getenv("MODEL_TEMPERATURE", "1.0"))
    MODEL_MAX_OUTPUT_TOKENS: int = int(os.getenv("MODEL_MAX_OUTPUT_TOKENS", "4096"))
    MODEL_TIMEOUT_SECONDS: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "60"))

    # Serper (Google Search API)
    SERPER_API_KEY: str = os.getenv("SERPER_API_KEY", "")
    SERPER_API_URL: str = os.getenv("SERPER_API_URL", "https://google.serper.dev/search")
    SEARCH_COUNTRY: str = os.getenv("SEARCH_COUNTRY", "pl")
    SEARCH_LANGUAGE: str = os.getenv("SEARCH_LANGUAGE", "pl")
    SEARCH_TIMEOUT_SECONDS: float = float(os.getenv("SEARCH_TIMEOUT_SECONDS", "10"))

    # Agent loop
    AGENT_MAX_ITERATIONS: int = int(os.getenv("AGENT_MAX_ITERATIONS", "10"))
    AGENT_TIMEOUT_SECONDS: float = float(os.getenv("AGENT_TIMEOUT_SECONDS", "90"))

    # Search cache
    CACHE_TTL_HOURS: int = int(os.getenv("CACHE_TTL_HOURS", "48"))
    HISTORY_DEFAULT_LIMIT: int = int(os.getenv("HISTORY_DEFAULT_LIMIT", "10"))
    HISTORY_MAX_LIMIT: int = int(os.getenv("HISTORY_MAX_LIMIT", "50"))

    # Application Settings
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # CORS Settings
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOWED_ORIGINS", "").split(",")
        if origin.strip()
    ]

    @classmethod
    def validate(cls) -> None:
        """
        Validate that all required settings are configured.

        Raises:
            ValueError: If any required setting is missing or the configured
                model has no pricing entry.
        """
        # Imported here to keep config importable without the service layer
        from weekend_backend.services.cost_service import CURRENT_PRICING

        required_settings = {
            "SUPABASE_URL": cls.SUPABASE_URL,
            "SUPABASE_SECRET_KEY": cls.SUPABASE_SECRET_KEY,
            "GOOGLE_API_KEY": cls.GOOGLE_API_KEY,
            "SERPER_API_KEY": cls.SERPER_API_KEY,
        }

        missing = [key for key, value in required_settings.items() if not value]

        if missing:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing)}. "
                "Please check your .env file."
            )

        if cls.GEMINI_MODEL not in CURRENT_PRICING.models:
            raise ValueError(
                f"GEMINI_MODEL '{cls.GEMINI_MODEL}' has no entry in pricing table "
                f"{CURRENT_PRICING.version}."
            )

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT.lower() == "production"

    @classmethod
    def is_development(cls) -> bool:
        """Check if running in development environment."""
        return cls.ENVIRONMENT.lower() == "development"


# Create a singleton instance
settings = Settings()

# Validate settings on module import (will fail fast if misconfigured)
# Skip validation during tests or when importing for introspection
if os.getenv("VALIDATE_CONFIG", "true").lower() == "true":
    try:
        settings.validate()
    except ValueError as e:
        # In development, warn but don't crash
        if settings.is_development():
            print(f"Warning: {e}")
            print("   The app may not work correctly until you configure your .env file.")
        else:
            raise
