from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel, Field, model_validator

from clinica.auth_models import RolUsuario, Usuario
from clinica.auth_security import lee_token, token_para
from clinica.auth_service import autentica, crea_usuario, get_usuario_by_id, lista_usuarios
from clinica.ciclos import (
    FinDeMes,
    ciclos_anio,
    genera_ciclos_anio,
    rango_efectivo,
    upsert_ciclo,
    upsert_ciclos,
)
from clinica.errors import Conflicto, NoEncontrado, PermisoDenegado
from clinica.logging_config import configure_logging, get_logger
from clinica.models import TipoCuracion
from clinica.reportes import FiltrosReporte, reporte_detallado, reporte_mensual
from clinica.seed import seed_admin, seed_pacientes_demo
from clinica.services import (
    actualiza_paciente,
    agenda,
    busca_paciente_por_rut,
    crea_curacion,
    crea_paciente,
    curaciones_paciente,
    disponibilidad,
    elimina_paciente,
    get_paciente,
    init_db,
    lista_pacientes,
    lista_pacientes_paginada,
    valida_hora_cita,
)

log = get_logger(__name__)

# OAuth2 Bearer (Authorization: Bearer <token>)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

app = FastAPI(title="Clínica Curaciones API", version="1.0.0")



# Startup

@app.on_event("startup")
def startup() -> None:
    configure_logging()
    init_db()
    seed_admin()



# Errores de dominio → HTTP

@app.exception_handler(NoEncontrado)
def _no_encontrado(request: Request, exc: NoEncontrado) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(Conflicto)
def _conflicto(request: Request, exc: Conflicto) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(PermisoDenegado)
def _permiso_denegado(request: Request, exc: PermisoDenegado) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": str(exc)})


@app.exception_handler(ValueError)
def _valor_invalido(request: Request, exc: ValueError) -> JSONResponse:
    log.info("peticion_invalida", path=request.url.path, error=str(exc))
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})



# Schemas Auth

class UserOut(BaseModel):
    id: int
    username: str
    rol: str


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class UsuarioCreateIn(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=6)
    rol: RolUsuario = RolUsuario.USER



# Schemas Domain

class PacienteCreateIn(BaseModel):
    rut: str = Field(..., min_length=1)
    nombre: str = Field(..., min_length=1)
    apellido: str = Field(..., min_length=1)
    fecha_nacimiento: date
    genero: str = Field(..., min_length=1)
    telefono: str | None = None
    direccion: str | None = None


class PacienteUpdateIn(BaseModel):
    nombre: str | None = None
    apellido: str | None = None
    fecha_nacimiento: date | None = None
    genero: str | None = None
    telefono: str | None = None
    direccion: str | None = None


class CuracionCreateIn(BaseModel):
    paciente_id: int
    tipo: TipoCuracion
    fecha: date
    proxima_fecha: date | None = None
    proxima_hora: str | None = None
    cantidad: int = Field(default=1, ge=1)
    observaciones: str | None = None

    @model_validator(mode="after")
    def _hora_en_bloque(self) -> "CuracionCreateIn":
        valida_hora_cita(self.proxima_fecha, self.proxima_hora)
        return self


class CicloIn(BaseModel):
    anio: int
    mes: int = Field(..., ge=1, le=12)
    fecha_inicio: date
    fecha_fin: date


class CiclosBulkIn(BaseModel):
    ciclos: list[CicloIn]


class FinDeMesIn(BaseModel):
    mes: int = Field(..., ge=1, le=12)
    fecha_fin: date


class GeneraCiclosIn(BaseModel):
    anio: int
    configs: list[FinDeMesIn]



# Dependencias auth

def get_current_user(token: str = Depends(oauth2_scheme)) -> Usuario:
    datos = lee_token(token)
    if datos is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")

    u = get_usuario_by_id(datos.usuario_id)
    if not u or not u.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario inválido")
    return u


def require_admin(user: Usuario = Depends(get_current_user)) -> Usuario:
    if user.rol is not RolUsuario.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Requiere rol admin")
    return user



# Health / Auth

@app.get("/api/health")
def health() -> dict[str, Any]:
    return {"status": "ok"}


@app.post("/api/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends()) -> TokenOut:
    u = autentica(form.username, form.password)
    if not u:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuario o contraseña incorrectos")

    return TokenOut(access_token=token_para(u), user=UserOut(id=u.id, username=u.username, rol=u.rol.value))


@app.get("/api/me", response_model=UserOut)
def me(user: Usuario = Depends(get_current_user)) -> UserOut:
    return UserOut(id=user.id, username=user.username, rol=user.rol.value)



# Usuarios (admin)

@app.get("/api/users")
def api_usuarios(admin: Usuario = Depends(require_admin)) -> list[dict]:
    return lista_usuarios()


@app.post("/api/users", status_code=status.HTTP_201_CREATED)
def api_crea_usuario(payload: UsuarioCreateIn, admin: Usuario = Depends(require_admin)) -> dict[str, Any]:
    return crea_usuario(payload.username, payload.password, payload.rol, creado_por=admin)



# Pacientes

@app.get("/api/patients")
def api_pacientes(
    rut: str | None = None,
    page: int | None = Query(default=None, ge=1),
    limit: int = Query(default=20, ge=1, le=200),
    user: Usuario = Depends(get_current_user),
) -> Any:
    if rut:
        p = busca_paciente_por_rut(rut)
        return p if p else {"found": False}
    if page:
        return lista_pacientes_paginada(page, limit)
    return lista_pacientes()


@app.post("/api/patients", status_code=status.HTTP_201_CREATED)
def api_crea_paciente(payload: PacienteCreateIn, user: Usuario = Depends(get_current_user)) -> dict[str, Any]:
    return crea_paciente(**payload.model_dump())


@app.post("/api/patients/seed")
def api_seed_pacientes(user: Usuario = Depends(get_current_user)) -> dict[str, Any]:
    return seed_pacientes_demo()


@app.get("/api/patients/{paciente_id}")
def api_paciente(paciente_id: int, user: Usuario = Depends(get_current_user)) -> dict[str, Any]:
    return {**get_paciente(paciente_id), "curaciones": curaciones_paciente(paciente_id)}


@app.put("/api/patients/{paciente_id}")
def api_actualiza_paciente(
    paciente_id: int, payload: PacienteUpdateIn, user: Usuario = Depends(get_current_user)
) -> dict[str, Any]:
    return actualiza_paciente(paciente_id, **payload.model_dump(exclude_unset=True))


@app.delete("/api/patients/{paciente_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_elimina_paciente(paciente_id: int, user: Usuario = Depends(get_current_user)) -> None:
    elimina_paciente(paciente_id)



# Curaciones / agenda

@app.post("/api/curaciones", status_code=status.HTTP_201_CREATED)
def api_crea_curacion(payload: CuracionCreateIn, user: Usuario = Depends(get_current_user)) -> dict[str, Any]:
    return crea_curacion(**payload.model_dump())


@app.get("/api/curaciones/patient/{paciente_id}")
def api_curaciones_paciente(paciente_id: int, user: Usuario = Depends(get_current_user)) -> list[dict]:
    return curaciones_paciente(paciente_id)


@app.get("/api/curaciones/agenda")
def api_agenda(
    desde: date = Query(..., alias="from"),
    hasta: date = Query(..., alias="to"),
    user: Usuario = Depends(get_current_user),
) -> list[dict]:
    return agenda(desde, hasta)


@app.get("/api/curaciones/availability")
def api_disponibilidad(fecha: date = Query(..., alias="date"), user: Usuario = Depends(get_current_user)) -> list[dict]:
    return disponibilidad(fecha)



# Ciclos

@app.get("/api/cycles")
def api_ciclos(anio: int | None = None, user: Usuario = Depends(get_current_user)) -> list[dict]:
    return ciclos_anio(anio or date.today().year)


@app.get("/api/cycles/effective")
def api_rango_efectivo(
    anio: int | None = None,
    mes: int | None = Query(default=None, ge=1, le=12),
    user: Usuario = Depends(get_current_user),
) -> dict[str, Any]:
    hoy = date.today()
    r = rango_efectivo(anio or hoy.year, mes or hoy.month)
    return {"fecha_inicio": r.fecha_inicio, "fecha_fin": r.fecha_fin, "configurado": r.configurado}


@app.post("/api/cycles")
def api_upsert_ciclo(payload: CicloIn, user: Usuario = Depends(get_current_user)) -> dict[str, Any]:
    return upsert_ciclo(payload.anio, payload.mes, payload.fecha_inicio, payload.fecha_fin)


@app.post("/api/cycles/bulk")
def api_upsert_ciclos(payload: CiclosBulkIn, user: Usuario = Depends(get_current_user)) -> list[dict]:
    return upsert_ciclos(c.model_dump() for c in payload.ciclos)


@app.post("/api/cycles/generate")
def api_genera_ciclos(payload: GeneraCiclosIn, user: Usuario = Depends(get_current_user)) -> list[dict]:
    return genera_ciclos_anio(payload.anio, [FinDeMes(c.mes, c.fecha_fin) for c in payload.configs])



# Reportes

@app.get("/api/reports/monthly")
def api_reporte_mensual(
    anio: int = Query(...),
    mes: int = Query(..., ge=1, le=12),
    user: Usuario = Depends(get_current_user),
) -> dict[str, Any]:
    return reporte_mensual(anio, mes)


@app.get("/api/reports/detailed")
def api_reporte_detallado(
    anio: int | None = None,
    trimestre: int | None = Query(default=None, ge=1, le=4),
    genero: str | None = None,
    edad_min: int | None = Query(default=None, ge=0, le=150),
    edad_max: int | None = Query(default=None, ge=0, le=150),
    user: Usuario = Depends(get_current_user),
) -> dict[str, Any]:
    filtros = FiltrosReporte(
        anio=anio,
        trimestre=trimestre,
        genero=genero or None,
        edad_min=edad_min,
        edad_max=edad_max,
    )
    return reporte_detallado(filtros)
