"""Centralized configuration for extdbauth.

Uses Pydantic BaseSettings with environment variable loading and validation.
Nested values use a double underscore, e.g. ``EDA_DATABASE__HOST`` or
``EDA_FIELD_MAPPING__USER_LOGIN``.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

DEFAULT_HASH_ALGORITHM = "bcrypt"


class DatabaseSettings(BaseModel):
    """Connection parameters for the external user database."""

    driver: str = Field(
        default="mysql+aiomysql", description="SQLAlchemy async driver name"
    )
    host: str = Field(default="localhost", description="Database host")
    port: int | None = Field(default=None, ge=1, le=65535, description="Database port")
    user: str = Field(default="", description="Database user")
    password: SecretStr = Field(default=SecretStr(""), description="Database password")
    database: str = Field(default="", description="Database name (file path for SQLite)")
    table_prefix: str = Field(default="", description="Prefix prepended to the user table")


class FieldMapping(BaseModel):
    """Column names of the external user table."""

    table: str = Field(default="user", min_length=1)
    user_login: str = Field(default="user_name", min_length=1)
    user_password: str = Field(default="user_password", min_length=1)
    user_real_name: str = Field(default="user_real_name", min_length=1)
    user_email: str = Field(default="user_email", min_length=1)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = {
        "env_prefix": "EDA_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "extra": "ignore",
    }

    # External database
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    field_mapping: FieldMapping = Field(default_factory=FieldMapping)
    hash_algorithm: str = Field(
        default=DEFAULT_HASH_ALGORITHM,
        description="Password hash: bcrypt, argon2i, argon2id or any hashlib digest",
    )

    # Local user store
    local_db_path: str = Field(default="extdbauth.db", description="SQLite path for local users")

    # Logging
    log_format: str = Field(default="text", description="Log format: text or json")
    log_level: str = Field(default="INFO", description="Python log level")

    @field_validator("hash_algorithm")
    @classmethod
    def normalize_hash_algorithm(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("text", "json"):
            msg = f"EDA_LOG_FORMAT must be 'text' or 'json', got '{v}'"
            raise ValueError(msg)
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        import logging

        v = v.upper()
        if not hasattr(logging, v):
            msg = f"EDA_LOG_LEVEL must be a valid Python log level, got '{v}'"
            raise ValueError(msg)
        return v


# Singleton, validated at import time.
settings = Settings()
