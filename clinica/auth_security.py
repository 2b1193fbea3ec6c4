"""Hash de contraseñas (bcrypt) y tokens JWT de sesión."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

from .auth_models import RolUsuario, Usuario
from .config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class DatosToken(BaseModel):
    """Claims de un token de sesión ya verificado."""

    usuario_id: int
    username: str
    rol: RolUsuario


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str | int, extra: dict[str, Any] | None = None) -> str:
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        **(extra or {}),
        "sub": str(subject),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_para(usuario: Usuario) -> str:
    """Token de sesión con el id, el username y el rol del usuario."""
    return create_access_token(usuario.id, {"username": usuario.username, "role": usuario.rol.value})


def decode_token(token: str) -> dict[str, Any]:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def lee_token(token: str) -> DatosToken | None:
    """
    None si el token está vencido, mal firmado o sin los claims de sesión.
    Tolera espacios y comillas alrededor (tokens copiados a mano).
    """
    try:
        payload = decode_token(token.strip().strip('"').strip("'"))
        return DatosToken(usuario_id=payload["sub"], username=payload["username"], rol=payload["role"])
    except (JWTError, KeyError, ValidationError):
        return None
