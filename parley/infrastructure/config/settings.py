from functools import lru_cache
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Runtime settings for the orchestration engine.
    Every field can be overridden with a PARLEY_-prefixed environment variable.
    """

    model_config = SettingsConfigDict(
        env_prefix="PARLEY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Identity ===
    SERVICE_NAME: str = Field(default="parley")

    # === Logging ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="console")

    # === Conversation loop ===
    MAX_ROUNDS: int = Field(default=6, ge=1)
    GATE_DIRECTIVES: bool = Field(default=True)
    DIRECTIVE_SEPARATOR: str = Field(default="\n\n")

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v

    @field_validator("GATE_DIRECTIVES", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower() in ("true", "1", "yes", "on")
        return bool(v)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
