from __future__ import annotations

from sqlalchemy import select

from .auth_models import RolUsuario, Usuario
from .auth_security import hash_password, verify_password
from .db import db_session
from .errors import Conflicto, PermisoDenegado
from .logging_config import get_logger

log = get_logger(__name__)

PASSWORD_MIN_LEN = 6


def _usuario_flat(u: Usuario) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "rol": u.rol.value,
        "is_active": u.is_active,
        "created_at": u.created_at,
    }


def crea_usuario(
    username: str,
    password: str,
    rol: RolUsuario | str = RolUsuario.USER,
    creado_por: Usuario | None = None,
) -> dict:
    """
    Crea un usuario. Si `creado_por` viene informado debe ser admin
    (el bootstrap y la CLI lo omiten).
    """
    if creado_por is not None and creado_por.rol is not RolUsuario.ADMIN:
        raise PermisoDenegado("Solo los administradores pueden crear usuarios.")

    username = username.strip().lower()
    if not username or not password:
        raise ValueError("Username y contraseña son obligatorios.")
    if len(password) < PASSWORD_MIN_LEN:
        raise ValueError(f"La contraseña debe tener al menos {PASSWORD_MIN_LEN} caracteres.")
    rol = RolUsuario(rol)

    with db_session() as s:
        exists = s.execute(select(Usuario).where(Usuario.username == username)).scalar_one_or_none()
        if exists:
            raise Conflicto(f"El usuario {username} ya existe.")

        u = Usuario(username=username, password_hash=hash_password(password), rol=rol, is_active=True)
        s.add(u)
        s.flush()
        log.info("usuario_creado", usuario_id=u.id, username=username, rol=rol.value)
        return _usuario_flat(u)


def autentica(username: str, password: str) -> Usuario | None:
    username = username.strip().lower()
    with db_session() as s:
        u = s.execute(select(Usuario).where(Usuario.username == username)).scalar_one_or_none()
        if not u or not u.is_active:
            return None
        if not verify_password(password, u.password_hash):
            log.warning("login_fallido", username=username)
            return None
        return u


def get_usuario_by_id(user_id: int) -> Usuario | None:
    with db_session() as s:
        return s.get(Usuario, user_id)


def lista_usuarios() -> list[dict]:
    with db_session() as s:
        return [_usuario_flat(u) for u in s.scalars(select(Usuario).order_by(Usuario.username))]
