from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env"

# Provider name -> (OpenAI-compatible base URL). Gemini is handled by its own client.
OPENAI_COMPATIBLE_BASE_URLS = {
    "openai": "https://api.openai.com/v1",
    "groq": "https://api.groq.com/openai/v1",
    "lovable": "https://ai.gateway.lovable.dev/v1",
}

SUPPORTED_AI_PROVIDERS = ("gemini", *OPENAI_COMPATIBLE_BASE_URLS.keys())


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"
    API_PREFIX: str = "/api"

    # Database (Supabase Postgres in production)
    DATABASE_URL: str | None = None

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    # Generative text backend
    AI_PROVIDER: str = "gemini"
    AI_TIMEOUT_SECONDS: float = 60.0

    GEMINI_API_KEY: str | None = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"

    GROQ_API_KEY: str | None = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"

    LOVABLE_API_KEY: str | None = None
    LOVABLE_MODEL: str = "google/gemini-2.5-flash"

    # ElevenLabs text-to-speech
    ELEVENLABS_API_KEY: str | None = None
    ELEVENLABS_BASE_URL: str = "https://api.elevenlabs.io/v1"
    ELEVENLABS_VOICE_ID: str = "EXAVITQu4vr4xnSDxMaL"  # "Sarah", clear female voice
    ELEVENLABS_MODEL_ID: str = "eleven_turbo_v2_5"
    ELEVENLABS_OUTPUT_FORMAT: str = "mp3_44100_128"
    ELEVENLABS_TIMEOUT_SECONDS: float = 30.0

    # Browser access
    CORS_ORIGIN: str = "http://localhost:5173"

    # Booking rules
    BOOKING_COOLDOWN_HOURS: int = 24
    SLOT_LISTING_LIMIT: int = 50

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def ai_provider(self) -> str:
        """Normalized provider name from AI_PROVIDER."""
        return (self.AI_PROVIDER or "gemini").strip().lower()

    def ai_api_key(self) -> str | None:
        """Credential for the selected provider, or None when unset."""
        return getattr(self, f"{self.ai_provider().upper()}_API_KEY", None)

    def ai_model(self) -> str | None:
        """Model name for the selected provider."""
        return getattr(self, f"{self.ai_provider().upper()}_MODEL", None)

    def cors_origins(self) -> list[str]:
        """CORS_ORIGIN may hold a comma-separated list."""
        return [origin.strip() for origin in self.CORS_ORIGIN.split(",") if origin.strip()]

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # Small local pool, fail fast
            config.update(
                {
                    "max_size": min(self.DB_POOL_MAX_SIZE, 5),
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
