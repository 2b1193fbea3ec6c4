"""Configuración de la aplicación desde variables de entorno (y `.env`)."""
from __future__ import annotations

import re
from pathlib import Path
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# DB SQLite en archivo en la raíz del proyecto
DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "clinica.sqlite"

# Bloques de 30 minutos para la próxima cita
DEFAULT_SLOTS = ("12:30", "13:00", "13:30", "14:00", "14:30", "15:00", "15:30", "16:00")

_HORA = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Variables CLINICA_*; las de JWT conservan su nombre sin prefijo."""

    model_config = SettingsConfigDict(env_prefix="CLINICA_", env_file=".env", extra="ignore")

    database_url: str = f"sqlite:///{DEFAULT_DB_PATH}"
    db_echo: bool = False

    # En producción: definirla como variable de entorno
    jwt_secret: str = Field(default="CHANGE_ME_DEV_SECRET", alias="JWT_SECRET")
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = Field(default=480, alias="JWT_EXPIRE_MINUTES")

    admin_username: str = "admin"
    admin_password: str | None = None

    log_level: str = "INFO"
    log_json: bool = False

    # CLINICA_SLOTS="12:30,13:00,..."
    slots: Annotated[tuple[str, ...], NoDecode] = DEFAULT_SLOTS

    @field_validator("slots", mode="before")
    @classmethod
    def _parse_slots(cls, value: object) -> tuple[str, ...]:
        if isinstance(value, str):
            value = [s.strip() for s in value.split(",") if s.strip()]
        if not value:
            return DEFAULT_SLOTS
        invalidas = [h for h in value if not _HORA.match(h)]
        if invalidas:
            raise ValueError(f"Horas inválidas (formato HH:MM): {', '.join(invalidas)}")
        # con formato HH:MM fijo el orden de texto es el cronológico
        return tuple(sorted(set(value)))


settings = Settings()
