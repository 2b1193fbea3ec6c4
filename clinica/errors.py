"""Errores de dominio; la API los traduce a códigos HTTP."""
from __future__ import annotations


class NoEncontrado(LookupError):
    def __init__(self, recurso: str, identificador: object | None = None) -> None:
        msg = f"{recurso} no encontrado"
        if identificador is not None:
            msg += f" ({identificador})"
        super().__init__(msg)
        self.recurso = recurso
        self.identificador = identificador

    def __str__(self) -> str:
        return self.args[0]


class Conflicto(ValueError):
    """Recurso duplicado (RUT o username ya registrados)."""


class PermisoDenegado(PermissionError):
    pass
