from __future__ import annotations

import enum
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class TipoCuracion(enum.Enum):
    AVANZADA = "avanzada"
    PIE_DIABETICO = "pie_diabetico"
    ULCERA_VENOSA = "ulcera_venosa"

    @property
    def grupo_reporte(self) -> "GrupoReporte":
        """Avanzada y pie diabético se reportan juntas."""
        if self is TipoCuracion.ULCERA_VENOSA:
            return GrupoReporte.ULCERA_VENOSA
        return GrupoReporte.AVANZADA


class GrupoReporte(enum.Enum):
    AVANZADA = "avanzada"
    ULCERA_VENOSA = "ulcera_venosa"


class Paciente(Base):
    __tablename__ = "pacientes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    rut: Mapped[str] = mapped_column(String(12), nullable=False, unique=True)
    nombre: Mapped[str] = mapped_column(String(80), nullable=False)
    apellido: Mapped[str] = mapped_column(String(80), nullable=False)
    fecha_nacimiento: Mapped[date] = mapped_column(Date, nullable=False)
    genero: Mapped[str] = mapped_column(String(30), nullable=False)
    telefono: Mapped[str | None] = mapped_column(String(30), nullable=True)
    direccion: Mapped[str | None] = mapped_column(String(200), nullable=True)

    creado_el: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    actualizado_el: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    curaciones: Mapped[list["Curacion"]] = relationship(back_populates="paciente", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"Paciente({self.nombre} {self.apellido}, {self.rut})"


class Curacion(Base):
    __tablename__ = "curaciones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    paciente_id: Mapped[int] = mapped_column(ForeignKey("pacientes.id", ondelete="CASCADE"), nullable=False)

    tipo: Mapped[TipoCuracion] = mapped_column(
        Enum(TipoCuracion, values_callable=lambda e: [m.value for m in e], native_enum=False, length=20),
        nullable=False,
    )
    fecha: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    # próxima cita (opcional); la hora solo tiene sentido junto a la fecha
    proxima_fecha: Mapped[date | None] = mapped_column(Date, nullable=True, index=True)
    proxima_hora: Mapped[str | None] = mapped_column(String(5), nullable=True)

    cantidad: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)
    creada_el: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    paciente: Mapped["Paciente"] = relationship(back_populates="curaciones")


class CicloMensual(Base):
    __tablename__ = "ciclos_mensuales"
    __table_args__ = (UniqueConstraint("anio", "mes", name="uq_ciclo_anio_mes"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    anio: Mapped[int] = mapped_column(Integer, nullable=False)
    mes: Mapped[int] = mapped_column(Integer, nullable=False)
    fecha_inicio: Mapped[date] = mapped_column(Date, nullable=False)
    # inclusiva
    fecha_fin: Mapped[date] = mapped_column(Date, nullable=False)

    def __repr__(self) -> str:
        return f"CicloMensual({self.anio}-{self.mes:02d}: {self.fecha_inicio} → {self.fecha_fin})"
