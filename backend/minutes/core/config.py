from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import EnvSettingsSource
from pydantic import field_validator, Field
from typing import Optional, Any
from pathlib import Path
from dotenv import load_dotenv
import json

# Find and load .env from the project root (two levels above backend/minutes)
# This file is at: backend/minutes/core/config.py
config_file_dir = Path(__file__).parent  # backend/minutes/core
package_dir = config_file_dir.parent  # backend/minutes
project_root = package_dir.parent.parent
env_path = project_root / ".env"

if env_path.exists():
    load_dotenv(env_path, override=False)
else:
    # Fallback: try loading from current working directory
    load_dotenv(override=False)


class CustomEnvSettingsSource(EnvSettingsSource):
    """Custom environment settings source that handles comma-separated lists."""

    def prepare_field_value(self, field_name: str, field, value: Any, value_is_complex: bool) -> Any:
        # CORS_ORIGINS may be a plain comma-separated string, which is not JSON
        if field_name == "CORS_ORIGINS" and isinstance(value, str):
            value = value.strip()
            if value.startswith('['):
                return super().prepare_field_value(field_name, field, value, value_is_complex)
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=None,
        case_sensitive=True,
    )

    # App Config
    APP_NAME: str = "Meeting Minutes"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    HOST: str = "127.0.0.1"
    PORT: int = 13001
    CORS_ORIGINS: list[str] = Field(
        default=["*"],
        description="Comma-separated or JSON array of allowed CORS origins"
    )

    # Storage: uploads/ and database/ are created below DATA_DIR
    DATA_DIR: Path = Path("userData")
    DATABASE_URL: Optional[str] = None  # Defaults to SQLite inside DATA_DIR
    MAX_FILE_SIZE_MB: int = 500

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Ping the ASR and LLM services once at startup to fill in /system/status
    STARTUP_HEALTH_CHECK: bool = True

    # Speech-to-text (Whisper ASR web service)
    WHISPER_BASE_URL: str = "http://localhost:9000"
    TRANSCRIPTION_TIMEOUT_SECONDS: float = 4 * 60 * 60

    # LLM providers (stored settings override these per request)
    AI_PROVIDER: str = "ollama"
    OLLAMA_BASE_URL: str = "http://localhost:11434"
    OLLAMA_MODEL: str = "qwen3:8b"
    LMSTUDIO_BASE_URL: str = "http://localhost:1234"
    LMSTUDIO_MODEL: str = "local-model"
    OPENAI_BASE_URL: str = "https://api.openai.com/v1"
    OPENAI_MODEL: str = "gpt-3.5-turbo"
    LLM_MAX_TOKENS: int = 4000
    LLM_TIMEOUT_SECONDS: float = 60 * 60

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS_ORIGINS from comma-separated string, JSON array, or list."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            v = v.strip()
            if v.startswith('['):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @property
    def uploads_dir(self) -> Path:
        return self.DATA_DIR / "uploads"

    @property
    def database_dir(self) -> Path:
        return self.DATA_DIR / "database"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{(self.database_dir / 'meetings.db').as_posix()}"

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Override settings sources to use custom env source."""
        return (
            init_settings,
            CustomEnvSettingsSource(settings_cls),
            dotenv_settings,
            file_secret_settings,
        )

# Initialize settings (reads from os.environ which was populated by load_dotenv)
settings = Settings()

# Meeting languages accepted by the ASR service ("" means auto-detect)
SUPPORTED_LANGUAGES = ["", "yue", "en", "zh"]

# Block tags that reasoning models wrap around their scratch output
LLM_METADATA_TAGS = ["think", "note"]
