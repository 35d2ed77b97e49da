import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


class Settings(BaseSettings):
    """Library settings - all configuration in one place"""

    ###################################
    #     APPLICATION SETTINGS        #
    ###################################
    app_name: str = Field(default="vectordata-core", description="Application name")
    environment: str = Field(
        default="development", description="Application environment"
    )
    debug: bool = Field(default=False, description="Debug mode")

    ###################################
    #            LOGGING              #
    ###################################
    log_level: Optional[str] = Field(
        default=None,
        description="Log level override. When unset, DEBUG in debug mode, otherwise INFO",
    )
    log_dir: str = Field(default="logs", description="Directory for JSON log files")
    log_to_file: bool = Field(
        default=False, description="Also write JSON formatted logs to log_dir"
    )

    ###################################
    #        VECTOR STORE             #
    ###################################
    vector_backend: Optional[
        Literal["memory", "redis", "qdrant", "azure_ai_search"]
    ] = Field(
        default=None,
        description="Vector store backend. None disables the configured store. 'memory' for testing/development.",
    )

    ###################################
    #              REDIS              #
    ###################################
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL (requires RedisJSON and RediSearch modules)",
    )
    redis_storage_type: Literal["json", "hashset"] = Field(
        default="json",
        description="How records are stored in Redis: JSON documents or hashes",
    )
    redis_prefix_collection_name_to_key_names: bool = Field(
        default=True,
        description="Prefix record keys with '<collection>:' so indexes pick them up",
    )

    ###################################
    #             QDRANT              #
    ###################################
    qdrant_url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    qdrant_api_key: Optional[str] = Field(
        default=None,
        description="Qdrant API key for authentication (optional)",
    )
    qdrant_has_named_vectors: bool = Field(
        default=False,
        description="Store vectors as named vectors instead of a single unnamed vector",
    )

    ###################################
    #         AZURE AI SEARCH         #
    ###################################
    azure_ai_search_endpoint: Optional[str] = Field(
        default=None,
        description="Azure AI Search service endpoint, e.g. https://<name>.search.windows.net",
    )
    azure_ai_search_api_key: Optional[str] = Field(
        default=None,
        description="Azure AI Search admin API key",
    )

    ###################################
    #           VALIDATORS            #
    ###################################
    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        allowed_envs = ["development", "staging", "production", "testing"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        level = v.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @model_validator(mode="after")
    def validate_backend_settings(self) -> "Settings":
        if self.vector_backend == "azure_ai_search" and not self.azure_ai_search_endpoint:
            raise ValueError(
                "azure_ai_search_endpoint is required when vector_backend is 'azure_ai_search'"
            )
        return self

    ###################################
    #           PROPERTIES            #
    ###################################
    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    @property
    def is_vector_store_enabled(self) -> bool:
        """Check if vector store is enabled"""
        return self.vector_backend is not None

    @property
    def effective_log_level(self) -> str:
        if self.log_level:
            return self.log_level
        return "DEBUG" if self.debug else "INFO"

    model_config = SettingsConfigDict(
        env_file=".env.test" if os.getenv("ENVIRONMENT") == "testing" else ".env",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get library settings (cached)

    Returns:
        Settings instance
    """
    return Settings()


# -------------------------------------------------------------
# Helpers for tests / scenarios requiring pure default settings
# -------------------------------------------------------------
class PureDefaultsSettings(Settings):  # type: ignore
    """Settings variant ignoring ENV, .env and secrets.

    Used in tests to obtain pure defaults (with validators) and
    to create instances with overrides that go through full validation.
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Only use init_settings source - no ENV, no .env, no secrets
        return (init_settings,)


def get_settings_pure_defaults() -> Settings:
    """Return instance with default values only (validators active, no ENV/.env)."""
    return PureDefaultsSettings()


def build_pure_defaults_with_overrides(**overrides: Any) -> Settings:
    """Create PureDefaultsSettings instance with overrides, all validated."""
    return PureDefaultsSettings(**overrides)


@contextmanager
def isolated_settings_environment(clear: bool = True):
    """Test context isolating ENV and get_settings cache.

    Usage:
        with isolated_settings_environment():
            s = get_settings_pure_defaults()
            ... assertions ...

    Args:
        clear: if True, removes all existing environment variables (restored after exit)
    """
    original_env = dict(os.environ)
    try:
        if clear:
            os.environ.clear()
        # Clear cache so get_settings() does not return a stale instance
        get_settings.cache_clear()
        yield
    finally:
        os.environ.clear()
        os.environ.update(original_env)
        get_settings.cache_clear()
