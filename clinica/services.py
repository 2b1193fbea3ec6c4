from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select

from .config import settings
from .db import Base, db_session, engine
from .errors import Conflicto, NoEncontrado
from .logging_config import get_logger
from .models import Curacion, Paciente, TipoCuracion

log = get_logger(__name__)


# =========================
# Bootstrap DB
# =========================
def init_db() -> None:
    """Crea las tablas si no existen."""
    # registra la tabla usuarios en el metadata
    from . import auth_models  # noqa: F401

    Base.metadata.create_all(bind=engine)


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class SlotAgenda:
    hora: str
    disponible: bool
    paciente: dict | None = None

    def as_dict(self) -> dict:
        return {"hora": self.hora, "disponible": self.disponible, "paciente": self.paciente}


def paciente_flat(p: Paciente) -> dict:
    return {
        "id": p.id,
        "rut": p.rut,
        "nombre": p.nombre,
        "apellido": p.apellido,
        "fecha_nacimiento": p.fecha_nacimiento,
        "genero": p.genero,
        "telefono": p.telefono,
        "direccion": p.direccion,
    }


def _identidad_paciente(p: Paciente) -> dict:
    return {"id": p.id, "nombre": p.nombre, "apellido": p.apellido, "rut": p.rut}


def _curacion_flat(c: Curacion) -> dict:
    return {
        "id": c.id,
        "paciente_id": c.paciente_id,
        "tipo": c.tipo.value,
        "fecha": c.fecha,
        "proxima_fecha": c.proxima_fecha,
        "proxima_hora": c.proxima_hora,
        "cantidad": c.cantidad,
        "observaciones": c.observaciones,
    }


# =========================
# Pacientes
# =========================
_CAMPOS_PACIENTE = ("nombre", "apellido", "fecha_nacimiento", "genero", "telefono", "direccion")


def crea_paciente(
    rut: str,
    nombre: str,
    apellido: str,
    fecha_nacimiento: date,
    genero: str,
    telefono: str | None = None,
    direccion: str | None = None,
) -> dict:
    rut = rut.strip()
    with db_session() as s:
        if s.execute(select(Paciente.id).where(Paciente.rut == rut)).first() is not None:
            raise Conflicto(f"Ya existe un paciente con RUT {rut}")

        p = Paciente(
            rut=rut,
            nombre=nombre.strip(),
            apellido=apellido.strip(),
            fecha_nacimiento=fecha_nacimiento,
            genero=genero.strip(),
            telefono=telefono,
            direccion=direccion,
        )
        s.add(p)
        s.flush()
        log.info("paciente_creado", paciente_id=p.id)
        return paciente_flat(p)


def get_paciente(paciente_id: int) -> dict:
    with db_session() as s:
        p = s.get(Paciente, paciente_id)
        if p is None:
            raise NoEncontrado("Paciente", paciente_id)
        return paciente_flat(p)


def busca_paciente_por_rut(rut: str) -> dict | None:
    with db_session() as s:
        p = s.execute(select(Paciente).where(Paciente.rut == rut.strip())).scalar_one_or_none()
        return paciente_flat(p) if p else None


def actualiza_paciente(paciente_id: int, **cambios) -> dict:
    """Actualización parcial: solo los campos presentes y no None. El RUT no cambia."""
    desconocidos = set(cambios) - set(_CAMPOS_PACIENTE)
    if desconocidos:
        raise ValueError(f"Campos no modificables: {', '.join(sorted(desconocidos))}")

    with db_session() as s:
        p = s.get(Paciente, paciente_id)
        if p is None:
            raise NoEncontrado("Paciente", paciente_id)
        for campo, valor in cambios.items():
            if valor is not None:
                setattr(p, campo, valor)
        s.flush()
        log.info("paciente_actualizado", paciente_id=paciente_id, campos=sorted(k for k, v in cambios.items() if v is not None))
        return paciente_flat(p)


def elimina_paciente(paciente_id: int) -> None:
    """Elimina el paciente junto con sus curaciones."""
    with db_session() as s:
        p = s.get(Paciente, paciente_id)
        if p is None:
            raise NoEncontrado("Paciente", paciente_id)
        s.delete(p)
        log.info("paciente_eliminado", paciente_id=paciente_id)


def lista_pacientes() -> list[dict]:
    with db_session() as s:
        rows = s.scalars(select(Paciente).order_by(Paciente.apellido, Paciente.nombre))
        return [paciente_flat(p) for p in rows]


def lista_pacientes_paginada(pagina: int = 1, limite: int = 20) -> dict:
    pagina = max(pagina, 1)
    limite = max(limite, 1)
    with db_session() as s:
        total = s.scalar(select(func.count(Paciente.id))) or 0
        rows = s.scalars(
            select(Paciente)
            .order_by(Paciente.apellido, Paciente.nombre)
            .offset((pagina - 1) * limite)
            .limit(limite)
        )
        return {
            "data": [paciente_flat(p) for p in rows],
            "total": total,
            "pagina": pagina,
            "total_paginas": math.ceil(total / limite),
        }


# =========================
# Curaciones
# =========================
def valida_hora_cita(proxima_fecha: date | None, proxima_hora: str | None) -> None:
    if proxima_hora is None:
        return
    if proxima_fecha is None:
        raise ValueError("La hora de la próxima cita requiere una fecha.")
    if proxima_hora not in settings.slots:
        raise ValueError(
            f"La hora debe ser un bloque de 30 minutos entre {settings.slots[0]} y {settings.slots[-1]}."
        )


def crea_curacion(
    paciente_id: int,
    tipo: TipoCuracion,
    fecha: date,
    proxima_fecha: date | None = None,
    proxima_hora: str | None = None,
    cantidad: int = 1,
    observaciones: str | None = None,
) -> dict:
    """
    Registra una curación. La disponibilidad del bloque horario NO se
    verifica aquí: dos curaciones pueden quedar en la misma (fecha, hora).
    """
    valida_hora_cita(proxima_fecha, proxima_hora)
    if cantidad < 1:
        raise ValueError("La cantidad debe ser un entero positivo.")

    with db_session() as s:
        if s.get(Paciente, paciente_id) is None:
            raise NoEncontrado("Paciente", paciente_id)

        c = Curacion(
            paciente_id=paciente_id,
            tipo=TipoCuracion(tipo),
            fecha=fecha,
            proxima_fecha=proxima_fecha,
            proxima_hora=proxima_hora,
            cantidad=cantidad,
            observaciones=observaciones,
        )
        s.add(c)
        s.flush()
        log.info("curacion_creada", curacion_id=c.id, paciente_id=paciente_id, tipo=c.tipo.value)
        return _curacion_flat(c)


def curaciones_paciente(paciente_id: int) -> list[dict]:
    with db_session() as s:
        rows = s.scalars(
            select(Curacion)
            .where(Curacion.paciente_id == paciente_id)
            .order_by(Curacion.fecha.desc(), Curacion.id.desc())
        )
        return [_curacion_flat(c) for c in rows]


def curaciones_por_cita(fecha: date, hora: str | None = None) -> list[dict]:
    """Curaciones cuya próxima cita cae exactamente en `fecha` (y `hora`, si se indica)."""
    with db_session() as s:
        q = select(Curacion).where(Curacion.proxima_fecha == fecha)
        if hora is not None:
            q = q.where(Curacion.proxima_hora == hora)
        rows = s.scalars(q.order_by(Curacion.proxima_hora.asc(), Curacion.id.asc()))
        return [_curacion_flat(c) for c in rows]


# =========================
# Agenda
# =========================
def agenda(desde: date, hasta: date) -> list[dict]:
    """Próximas citas entre `desde` y `hasta` (inclusive), con la identidad del paciente."""
    with db_session() as s:
        rows = s.execute(
            select(Curacion, Paciente)
            .join(Paciente, Paciente.id == Curacion.paciente_id)
            .where(Curacion.proxima_fecha >= desde, Curacion.proxima_fecha <= hasta)
            .order_by(Curacion.proxima_fecha.asc(), Curacion.proxima_hora.asc())
        ).all()
        return [{**_curacion_flat(c), "paciente": _identidad_paciente(p)} for c, p in rows]


# =========================
# Disponibilidad
# =========================
def disponibilidad(fecha: date) -> list[dict]:
    """
    Estado de los bloques horarios de `fecha`, en orden.
    Es solo informativo: no reserva nada, y quien agenda debe volver a
    consultar justo antes de guardar.
    """
    with db_session() as s:
        rows = s.execute(
            select(Curacion.id, Curacion.proxima_hora, Paciente)
            .join(Paciente, Paciente.id == Curacion.paciente_id)
            .where(Curacion.proxima_fecha == fecha, Curacion.proxima_hora.is_not(None))
            .order_by(Curacion.id.asc())
        ).all()

        # con datos duplicados gana la primera curación registrada
        ocupados: dict[str, dict] = {}
        for r in rows:
            ocupados.setdefault(r.proxima_hora, _identidad_paciente(r.Paciente))

    slots = [
        SlotAgenda(hora=h, disponible=h not in ocupados, paciente=ocupados.get(h))
        for h in settings.slots
    ]
    log.debug("disponibilidad", fecha=fecha.isoformat(), ocupados=len(ocupados))
    return [sl.as_dict() for sl in slots]
