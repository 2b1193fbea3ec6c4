"""
Ciclos mensuales de la clínica.

Un ciclo redefine el periodo contable de un mes (fecha_inicio/fecha_fin
inclusivas) y no tiene por qué coincidir con el mes calendario. Los reportes
nunca leen la tabla directamente: pasan siempre por `rango_efectivo`.
"""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import select

from .db import db_session
from .logging_config import get_logger
from .models import CicloMensual

log = get_logger(__name__)


# =========================
# DTO
# =========================
@dataclass(frozen=True)
class RangoEfectivo:
    fecha_inicio: date
    fecha_fin: date
    configurado: bool = False

    def contiene(self, dia: date) -> bool:
        return self.fecha_inicio <= dia <= self.fecha_fin


@dataclass(frozen=True)
class FinDeMes:
    """Configuración de entrada del generador: mes y su último día de ciclo."""
    mes: int
    fecha_fin: date


def _ciclo_flat(c: CicloMensual) -> dict:
    return {
        "id": c.id,
        "anio": c.anio,
        "mes": c.mes,
        "fecha_inicio": c.fecha_inicio,
        "fecha_fin": c.fecha_fin,
    }


def rango_calendario(anio: int, mes: int) -> RangoEfectivo:
    """Mes calendario completo (considera meses cortos y años bisiestos)."""
    ultimo = calendar.monthrange(anio, mes)[1]
    return RangoEfectivo(date(anio, mes, 1), date(anio, mes, ultimo), configurado=False)


# =========================
# Store
# =========================
def _get(s, anio: int, mes: int) -> CicloMensual | None:
    return s.execute(
        select(CicloMensual).where(CicloMensual.anio == anio, CicloMensual.mes == mes)
    ).scalar_one_or_none()


def get_ciclo(anio: int, mes: int) -> dict | None:
    with db_session() as s:
        c = _get(s, anio, mes)
        return _ciclo_flat(c) if c else None


def ciclos_anio(anio: int) -> list[dict]:
    with db_session() as s:
        rows = s.scalars(select(CicloMensual).where(CicloMensual.anio == anio).order_by(CicloMensual.mes.asc()))
        return [_ciclo_flat(c) for c in rows]


def upsert_ciclo(anio: int, mes: int, fecha_inicio: date, fecha_fin: date) -> dict:
    """Crea o actualiza el ciclo de (anio, mes)."""
    if not 1 <= mes <= 12:
        raise ValueError(f"Mes inválido: {mes}")
    if fecha_inicio > fecha_fin:
        raise ValueError(f"Ciclo {anio}-{mes:02d}: inicio {fecha_inicio} posterior al fin {fecha_fin}")

    with db_session() as s:
        c = _get(s, anio, mes)
        if c is None:
            c = CicloMensual(anio=anio, mes=mes, fecha_inicio=fecha_inicio, fecha_fin=fecha_fin)
            s.add(c)
            creado = True
        else:
            c.fecha_inicio = fecha_inicio
            c.fecha_fin = fecha_fin
            creado = False
        s.flush()
        log.info(
            "ciclo_upsert",
            anio=anio,
            mes=mes,
            fecha_inicio=fecha_inicio.isoformat(),
            fecha_fin=fecha_fin.isoformat(),
            creado=creado,
        )
        return _ciclo_flat(c)


def upsert_ciclos(ciclos: Iterable[dict]) -> list[dict]:
    """
    Upsert masivo, secuencial. Cada ciclo se confirma por separado:
    si uno falla, los anteriores quedan guardados.
    """
    return [
        upsert_ciclo(c["anio"], c["mes"], c["fecha_inicio"], c["fecha_fin"])
        for c in ciclos
    ]


# =========================
# Rango efectivo
# =========================
def rango_efectivo(anio: int, mes: int) -> RangoEfectivo:
    """
    Fechas reales del periodo (anio, mes): las del ciclo configurado o,
    si no existe, el mes calendario completo. Nunca falla por ausencia.
    """
    with db_session() as s:
        c = _get(s, anio, mes)
        if c is not None:
            return RangoEfectivo(c.fecha_inicio, c.fecha_fin, configurado=True)
    return rango_calendario(anio, mes)


# =========================
# Generación anual
# =========================
def genera_ciclos_anio(anio: int, configs: Iterable[FinDeMes]) -> list[dict]:
    """
    Genera los ciclos de un año encadenados: cada ciclo empieza el día
    siguiente al fin del ciclo configurado anterior (no del mes calendario
    anterior). El primero continúa desde el diciembre del año previo si
    existe; si no, desde el 1 de enero.

    Los meses ausentes en `configs` no reciben ciclo. Idempotente.
    """
    ordenadas = sorted(configs, key=lambda c: c.mes)
    resultado: list[dict] = []

    fin_previo: date | None = None
    for i, cfg in enumerate(ordenadas):
        if i == 0:
            diciembre = get_ciclo(anio - 1, 12)
            if diciembre is not None:
                inicio = diciembre["fecha_fin"] + timedelta(days=1)
            else:
                inicio = date(anio, 1, 1)
        else:
            inicio = fin_previo + timedelta(days=1)

        resultado.append(upsert_ciclo(anio, cfg.mes, inicio, cfg.fecha_fin))
        fin_previo = cfg.fecha_fin

    log.info("ciclos_generados", anio=anio, meses=[c.mes for c in ordenadas])
    return resultado
