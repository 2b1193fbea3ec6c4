from __future__ import annotations

from datetime import date

from sqlalchemy import select

from .auth_models import RolUsuario, Usuario
from .auth_security import hash_password
from .config import settings
from .db import db_session
from .logging_config import get_logger
from .models import Paciente
from .services import paciente_flat

log = get_logger(__name__)

PACIENTES_DEMO = [
    ("11111111-1", "Ana", "González", date(1985, 3, 15), "Femenino", "+56912345678", "Av. Principal 123"),
    ("22222222-2", "Carlos", "Rodríguez", date(1972, 7, 22), "Masculino", "+56987654321", "Calle Los Robles 45"),
    ("33333333-3", "María", "Silva", date(1990, 11, 8), "Femenino", "+56955443322", "Pasaje Las Flores 7"),
    ("44444444-4", "Pedro", "Martínez", date(1965, 1, 30), "Masculino", "+56933221100", "Plaza Central 89"),
    ("55555555-5", "Laura", "López", date(1988, 9, 12), "Femenino", "+56911223344", "Barrio Norte 156"),
    ("66666666-6", "Roberto", "Hernández", date(1955, 4, 25), "Masculino", "+56966778899", "Camino Real 234"),
    ("77777777-7", "Sofía", "Torres", date(1992, 12, 3), "Femenino", "+56999887766", "Av. Sur 67"),
    ("88888888-8", "José", "Ramírez", date(1978, 6, 18), "Masculino", "+56944332211", "Villa Verde 12"),
]


def seed_admin() -> bool:
    """
    Crea el administrador inicial desde la configuración (idempotente).
    Sin CLINICA_ADMIN_PASSWORD no se crea nada.
    """
    if not settings.admin_password:
        log.warning("seed_admin_omitido", motivo="CLINICA_ADMIN_PASSWORD no definida")
        return False

    username = settings.admin_username.strip().lower()
    with db_session() as s:
        if s.execute(select(Usuario.id).where(Usuario.username == username)).first() is not None:
            return False
        s.add(Usuario(username=username, password_hash=hash_password(settings.admin_password), rol=RolUsuario.ADMIN))
    log.info("seed_admin_creado", username=username)
    return True


def seed_pacientes_demo() -> dict:
    """Pacientes de ejemplo; los RUT ya registrados se omiten."""
    creados: list[dict] = []
    with db_session() as s:
        for rut, nombre, apellido, nacimiento, genero, telefono, direccion in PACIENTES_DEMO:
            if s.execute(select(Paciente.id).where(Paciente.rut == rut)).first() is not None:
                continue
            p = Paciente(
                rut=rut,
                nombre=nombre,
                apellido=apellido,
                fecha_nacimiento=nacimiento,
                genero=genero,
                telefono=telefono,
                direccion=direccion,
            )
            s.add(p)
            s.flush()
            creados.append(paciente_flat(p))

    log.info("seed_pacientes", creados=len(creados))
    return {"creados": len(creados), "pacientes": creados}
