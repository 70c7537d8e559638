from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import InvalidParametersError
from .logging_utils import get_data_dir
from .store import DEFAULT_SQLITE_FILE_NAME, InMemoryProfileStore, ProfileStore, SqliteProfileStore

_LOGGER = logging.getLogger("tastecore.settings")

StoreBackend = Literal["memory", "sqlite"]

DEFAULT_PORT = 5001


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    store: StoreBackend = "memory"
    database_path: Path | None = None
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    model_config = ConfigDict(extra="forbid")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ServerSettings":
        env = os.environ if environ is None else environ
        data: dict[str, object] = {}
        if env.get("TASTECORE_HOST"):
            data["host"] = env["TASTECORE_HOST"]
        port = env.get("TASTECORE_PORT") or env.get("PORT")
        if port:
            data["port"] = port
        if env.get("TASTECORE_STORE"):
            data["store"] = env["TASTECORE_STORE"].strip().lower()
        if env.get("TASTECORE_DB_PATH"):
            data["database_path"] = env["TASTECORE_DB_PATH"]
        origins = env.get("TASTECORE_CORS_ORIGINS")
        if origins:
            data["cors_origins"] = [item.strip() for item in origins.split(",") if item.strip()]
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            _LOGGER.warning("Invalid server settings: %s", exc)
            raise InvalidParametersError(str(exc)) from exc

    def resolved_database_path(self) -> Path:
        if self.database_path is not None:
            return self.database_path.expanduser()
        return get_data_dir() / DEFAULT_SQLITE_FILE_NAME

    def build_store(self) -> ProfileStore:
        match self.store:
            case "sqlite":
                return SqliteProfileStore(self.resolved_database_path())
            case _:
                return InMemoryProfileStore()
