"""
Reportes estadísticos de curaciones.

Ambos reportes traducen (año, mes) o (año, trimestre) a fechas concretas
mediante `ciclos.rango_efectivo`, así la configuración de ciclos se
refleja automáticamente en todos ellos. Los rangos son inclusivos en
ambos extremos.
"""
from __future__ import annotations

import calendar
from dataclasses import asdict, dataclass
from datetime import date

from sqlalchemy import func, select

from .ciclos import rango_efectivo
from .db import db_session
from .logging_config import get_logger
from .models import Curacion, GrupoReporte, Paciente, TipoCuracion

log = get_logger(__name__)


@dataclass(frozen=True)
class FiltrosReporte:
    anio: int | None = None
    trimestre: int | None = None
    genero: str | None = None
    edad_min: int | None = None
    edad_max: int | None = None


def meses_trimestre(trimestre: int) -> tuple[int, int]:
    """Primer y último mes del trimestre (1..4)."""
    if not 1 <= trimestre <= 4:
        raise ValueError(f"Trimestre inválido: {trimestre}")
    return (trimestre - 1) * 3 + 1, trimestre * 3


def rango_trimestre(anio: int, trimestre: int) -> tuple[date, date]:
    """
    Desde el inicio efectivo del primer mes hasta el fin efectivo del último.
    El ciclo del mes central no influye en los bordes.
    """
    primero, ultimo = meses_trimestre(trimestre)
    return rango_efectivo(anio, primero).fecha_inicio, rango_efectivo(anio, ultimo).fecha_fin


def anios_antes(dia: date, anios: int) -> date:
    """Misma fecha `anios` años antes; un 29 de febrero sin equivalente pasa al 28."""
    anio = dia.year - anios
    if (dia.month, dia.day) == (2, 29) and not calendar.isleap(anio):
        return date(anio, 2, 28)
    return dia.replace(year=anio)


# =========================
# Reporte mensual
# =========================
def reporte_mensual(anio: int, mes: int) -> dict:
    rango = rango_efectivo(anio, mes)

    with db_session() as s:
        rows = s.execute(
            select(Curacion.tipo, func.count(Curacion.id))
            .where(Curacion.fecha >= rango.fecha_inicio, Curacion.fecha <= rango.fecha_fin)
            .group_by(Curacion.tipo)
        ).all()

    conteo = {t.value: 0 for t in TipoCuracion}
    for tipo, total in rows:
        conteo[tipo.value] = int(total)

    log.debug("reporte_mensual", anio=anio, mes=mes, ciclo_configurado=rango.configurado)
    return {
        "anio": anio,
        "mes": mes,
        "fecha_inicio": rango.fecha_inicio,
        "fecha_fin": rango.fecha_fin,
        **conteo,
        "total_general": sum(conteo.values()),
    }


# =========================
# Reporte detallado (trimestral)
# =========================
def reporte_detallado(filtros: FiltrosReporte, hoy: date | None = None) -> dict:
    """
    Conteo de curaciones por grupo (avanzada + pie diabético / úlcera venosa)
    y por género del paciente.

    Las edades se traducen a fechas de nacimiento respecto de `hoy`
    (por defecto, la fecha actual en el momento de la consulta):
    - edad_max → nacidos después de hoy - (edad_max + 1) años
    - edad_min → nacidos hasta hoy - edad_min años
    """
    hoy = hoy or date.today()

    q = (
        select(Curacion.tipo, Paciente.genero, func.count(Curacion.id))
        .join(Paciente, Paciente.id == Curacion.paciente_id)
    )

    rango: tuple[date, date] | None = None
    if filtros.anio and filtros.trimestre:
        rango = rango_trimestre(filtros.anio, filtros.trimestre)
        q = q.where(Curacion.fecha >= rango[0], Curacion.fecha <= rango[1])

    if filtros.genero:
        q = q.where(Paciente.genero == filtros.genero)

    if filtros.edad_max is not None:
        # quien cumple edad_max + 1 justo hoy ya queda fuera
        q = q.where(Paciente.fecha_nacimiento > anios_antes(hoy, filtros.edad_max + 1))
    if filtros.edad_min is not None:
        q = q.where(Paciente.fecha_nacimiento <= anios_antes(hoy, filtros.edad_min))

    with db_session() as s:
        rows = s.execute(q.group_by(Curacion.tipo, Paciente.genero)).all()

    resumen = {g.value: {"total": 0, "por_genero": {}} for g in GrupoReporte}
    for tipo, genero, total in rows:
        grupo = resumen[tipo.grupo_reporte.value]
        grupo["total"] += int(total)
        grupo["por_genero"][genero] = grupo["por_genero"].get(genero, 0) + int(total)

    log.debug("reporte_detallado", filtros=asdict(filtros), hoy=hoy.isoformat())
    return {
        "filtros": asdict(filtros),
        "fecha_inicio": rango[0] if rango else None,
        "fecha_fin": rango[1] if rango else None,
        "resumen": resumen,
    }
