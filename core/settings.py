from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load .env file from project root
_env_path = Path(__file__).parent.parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path)

DEFAULT_CONFIG_PATH = Path("config/default.yaml")


class S3Settings(BaseModel):
    endpoint_url: str | None = None
    region: str | None = None
    access_key_env: str = "AWS_ACCESS_KEY_ID"
    secret_key_env: str = "AWS_SECRET_ACCESS_KEY"

    @property
    def access_key_id(self) -> str | None:
        return os.getenv(self.access_key_env) or None

    @property
    def secret_access_key(self) -> str | None:
        return os.getenv(self.secret_key_env) or None


class StorageSettings(BaseModel):
    backend: Literal["disk", "memory", "s3"] = "disk"
    root: Path = Path("./data")
    # write to root/.staging and rename into place
    atomic_writes: bool = True
    s3: S3Settings | None = None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(8080, ge=1, le=65535)


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = False
    file: Path | None = None

    @field_validator("level", mode="before")
    @classmethod
    def _normalize_level(cls, value: Any) -> str:
        if value is None:
            return "INFO"
        return str(value).strip().upper()


class Settings(BaseModel):
    storage: StorageSettings = Field(default_factory=StorageSettings)
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def load(cls, path: Path | None = None) -> "Settings":
        """Load settings from a YAML configuration file.

        Args:
            path: Optional path to configuration file. If not provided, uses
                the SOS_CONFIG environment variable or config/default.yaml.

        Returns:
            Settings instance with environment overrides applied
            (SOS_DATA_ROOT, LOG_LEVEL, JSON_LOGGING, LOG_FILE).

        Raises:
            FileNotFoundError: If an explicitly requested file does not exist.
            ValueError: If configuration is invalid.
        """
        env_path = os.getenv("SOS_CONFIG")
        config_path = path or (Path(env_path) if env_path else DEFAULT_CONFIG_PATH)
        payload: dict[str, Any] = {}
        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as fp:
                payload = yaml.safe_load(fp) or {}
        elif path is not None or env_path:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        try:
            settings = cls(**payload)
        except Exception as exc:
            raise ValueError(f"Invalid configuration: {exc}") from exc
        return settings.with_env_overrides()

    def with_env_overrides(self) -> "Settings":
        storage = self.storage
        logging_settings = self.logging
        data_root = os.getenv("SOS_DATA_ROOT")
        if data_root:
            storage = storage.model_copy(update={"root": Path(data_root)})
        updates: dict[str, Any] = {}
        if os.getenv("LOG_LEVEL"):
            updates["level"] = os.environ["LOG_LEVEL"].strip().upper()
        if os.getenv("JSON_LOGGING"):
            updates["json_format"] = os.environ["JSON_LOGGING"].lower() in {"true", "1", "yes"}
        if os.getenv("LOG_FILE"):
            updates["file"] = Path(os.environ["LOG_FILE"])
        if updates:
            logging_settings = logging_settings.model_copy(update=updates)
        return self.model_copy(update={"storage": storage, "logging": logging_settings})


@lru_cache(maxsize=1)
def get_settings(path: str | None = None) -> Settings:
    return Settings.load(Path(path) if path else None)


__all__ = [
    "Settings",
    "StorageSettings",
    "S3Settings",
    "ServerSettings",
    "LoggingSettings",
    "get_settings",
]
