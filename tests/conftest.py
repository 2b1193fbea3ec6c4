"""Configuración de pytest y fixtures compartidas."""

import itertools
import os
import tempfile
from datetime import date

# La configuración se lee al importar el paquete: el entorno va antes.
_TMP_DIR = tempfile.mkdtemp(prefix="clinica-tests-")
os.environ["CLINICA_DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test_clinica.sqlite')}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["CLINICA_ADMIN_PASSWORD"] = ""
os.environ.pop("CLINICA_SLOTS", None)

import pytest
from fastapi.testclient import TestClient

from clinica.api_main import app
from clinica.auth_models import RolUsuario, Usuario
from clinica.auth_security import hash_password, token_para
from clinica.db import Base, db_session, engine
from clinica.models import CicloMensual, Curacion, Paciente, TipoCuracion
from clinica.services import init_db


@pytest.fixture(autouse=True)
def temp_db():
    """Tablas nuevas para cada test."""
    init_db()
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def nuevo_paciente():
    """Factory: inserta un paciente y devuelve su id."""
    ruts = itertools.count(1)

    def _crea(genero: str = "Femenino", fecha_nacimiento: date = date(1980, 5, 20), **extra) -> int:
        n = next(ruts)
        with db_session() as s:
            p = Paciente(
                rut=extra.pop("rut", f"{10000000 + n}-{n % 10}"),
                nombre=extra.pop("nombre", f"Nombre{n}"),
                apellido=extra.pop("apellido", f"Apellido{n}"),
                fecha_nacimiento=fecha_nacimiento,
                genero=genero,
                **extra,
            )
            s.add(p)
            s.flush()
            return p.id

    return _crea


@pytest.fixture
def nueva_curacion():
    """Factory: inserta una curación directamente (sin validaciones de servicio)."""

    def _crea(
        paciente_id: int,
        fecha: date,
        tipo: TipoCuracion = TipoCuracion.AVANZADA,
        proxima_fecha: date | None = None,
        proxima_hora: str | None = None,
    ) -> int:
        with db_session() as s:
            c = Curacion(
                paciente_id=paciente_id,
                tipo=tipo,
                fecha=fecha,
                proxima_fecha=proxima_fecha,
                proxima_hora=proxima_hora,
            )
            s.add(c)
            s.flush()
            return c.id

    return _crea


@pytest.fixture
def nuevo_ciclo():
    def _crea(anio: int, mes: int, inicio: date, fin: date) -> None:
        with db_session() as s:
            s.add(CicloMensual(anio=anio, mes=mes, fecha_inicio=inicio, fecha_fin=fin))

    return _crea


def _usuario(username: str, rol: RolUsuario) -> Usuario:
    with db_session() as s:
        u = Usuario(username=username, password_hash=hash_password("secreto123"), rol=rol)
        s.add(u)
        s.flush()
        return u


@pytest.fixture
def admin_user() -> Usuario:
    return _usuario("admin", RolUsuario.ADMIN)


@pytest.fixture
def normal_user() -> Usuario:
    return _usuario("enfermera", RolUsuario.USER)


@pytest.fixture
def auth_headers_admin(admin_user: Usuario) -> dict:
    return {"Authorization": f"Bearer {token_para(admin_user)}"}


@pytest.fixture
def auth_headers_user(normal_user: Usuario) -> dict:
    return {"Authorization": f"Bearer {token_para(normal_user)}"}


@pytest.fixture
def test_client() -> TestClient:
    return TestClient(app)
