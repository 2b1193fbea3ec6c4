from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings


def _crea_engine(url: str, echo: bool = False) -> Engine:
    if not url.startswith("sqlite"):
        return create_engine(url, echo=echo)

    # FastAPI ejecuta los endpoints sync en un threadpool
    eng = create_engine(url, echo=echo, connect_args={"check_same_thread": False})

    @event.listens_for(eng, "connect")
    def _foreign_keys(dbapi_conn, _record) -> None:
        # SQLite ignora ForeignKey/ondelete si no se activa por conexión
        cur = dbapi_conn.cursor()
        cur.execute("PRAGMA foreign_keys=ON")
        cur.close()

    return eng


engine = _crea_engine(settings.database_url, echo=settings.db_echo)

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Base ORM de pacientes, curaciones, ciclos y usuarios."""


@contextmanager
def db_session() -> Iterator[Session]:
    """Una transacción por bloque: commit al salir, rollback si hay excepción."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
