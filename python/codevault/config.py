"""Application settings loaded from environment variables.

Environment Configuration:
    CODEVAULT_ENV: Deployment environment (local | test | staging | prod)
    DATABASE_URL: SQLAlchemy connection string (required)
    CODEVAULT_INTERNAL_SECRET: Internal API secret (required in staging/prod)

Auth Configuration (required in all environments):
    JWKS_URL: Full URL to the identity provider's JWKS endpoint
    JWT_ISSUER: Expected JWT issuer (trailing slash stripped)
    JWT_AUDIENCES: Comma-separated list of allowed audiences
    OWNER_OPEN_ID: External identity that is granted the admin role

Storage Configuration:
    STORAGE_URL / STORAGE_SERVICE_KEY: Object storage endpoint and key.
        When either is missing, an in-memory blob store is used.

Assistant Configuration:
    LLM_PROVIDER / LLM_MODEL: Completion provider and model
    OPENAI_API_KEY / ANTHROPIC_API_KEY: Platform keys for the providers
"""

from enum import Enum
from functools import lru_cache
from typing import Annotated

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings

DEFAULT_LANGUAGE = "javascript"
DEFAULT_PROJECT_COLOR = "#6366f1"

# Upper bound on the chat window sent to the completion service
MAX_CHAT_HISTORY_WINDOW = 20


class Environment(str, Enum):
    LOCAL = "local"
    TEST = "test"
    STAGING = "staging"
    PROD = "prod"


class Settings(BaseSettings):
    """Environment-backed configuration; field aliases are the variable names.

    DATABASE_URL and the three JWT settings are required everywhere.
    CODEVAULT_INTERNAL_SECRET is required in staging and prod, where every
    request must present it.
    """

    codevault_env: Environment = Field(default=Environment.LOCAL, alias="CODEVAULT_ENV")
    database_url: Annotated[str, Field(alias="DATABASE_URL")]
    codevault_internal_secret: str | None = Field(
        default=None, alias="CODEVAULT_INTERNAL_SECRET"
    )

    # Identity provider settings (required in all environments)
    jwks_url: str | None = Field(default=None, alias="JWKS_URL")
    jwt_issuer: str | None = Field(default=None, alias="JWT_ISSUER")
    jwt_audiences: str | None = Field(default=None, alias="JWT_AUDIENCES")
    owner_open_id: str | None = Field(default=None, alias="OWNER_OPEN_ID")
    session_cookie_name: str = Field(default="codevault_session", alias="SESSION_COOKIE_NAME")

    # Blob storage settings
    storage_url: str | None = Field(default=None, alias="STORAGE_URL")
    storage_service_key: str | None = Field(default=None, alias="STORAGE_SERVICE_KEY")
    storage_bucket: str = Field(default="files", alias="STORAGE_BUCKET")
    max_upload_bytes: int = Field(default=10 * 1024 * 1024, alias="MAX_UPLOAD_BYTES")  # 10 MB

    # Assistant settings
    llm_provider: str = Field(default="openai", alias="LLM_PROVIDER")
    llm_model: str = Field(default="gpt-4o-mini", alias="LLM_MODEL")
    llm_max_tokens: int = Field(default=2048, alias="LLM_MAX_TOKENS")
    llm_timeout_s: int = Field(default=45, alias="LLM_TIMEOUT_S")
    enable_openai: bool = Field(default=True, alias="ENABLE_OPENAI")
    enable_anthropic: bool = Field(default=True, alias="ENABLE_ANTHROPIC")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")
    anthropic_api_key: str | None = Field(default=None, alias="ANTHROPIC_API_KEY")
    chat_history_window: int = Field(
        default=MAX_CHAT_HISTORY_WINDOW,
        ge=1,
        le=MAX_CHAT_HISTORY_WINDOW,
        alias="CHAT_HISTORY_WINDOW",
    )
    assistant_reply_language: str = Field(default="Spanish", alias="ASSISTANT_REPLY_LANGUAGE")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @model_validator(mode="after")
    def check_deployment_settings(self) -> "Settings":
        unset = [
            name
            for name, value in (
                ("JWKS_URL", self.jwks_url),
                ("JWT_ISSUER", self.jwt_issuer),
                ("JWT_AUDIENCES", self.jwt_audiences),
            )
            if not value
        ]
        if unset:
            raise ValueError(f"Missing required auth settings: {', '.join(unset)}")
        if self.requires_internal_header and not self.codevault_internal_secret:
            raise ValueError(
                "CODEVAULT_INTERNAL_SECRET must be set when "
                f"CODEVAULT_ENV={self.codevault_env.value}"
            )
        return self

    @property
    def requires_internal_header(self) -> bool:
        return self.codevault_env in (Environment.STAGING, Environment.PROD)

    @property
    def audience_list(self) -> list[str]:
        return [a.strip() for a in (self.jwt_audiences or "").split(",") if a.strip()]

    @property
    def normalized_issuer(self) -> str | None:
        return self.jwt_issuer.rstrip("/") if self.jwt_issuer else None

    @property
    def llm_api_key(self) -> str | None:
        """Platform key for llm_provider; None if the provider has none configured."""
        keys = {"openai": self.openai_api_key, "anthropic": self.anthropic_api_key}
        return keys.get(self.llm_provider)


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, read once.

    Raises:
        ValidationError: A required variable is missing or malformed.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() rereads the environment."""
    get_settings.cache_clear()
