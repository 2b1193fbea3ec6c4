"""Tests de la configuración por variables de entorno."""

import pytest
from pydantic import ValidationError

from clinica.config import DEFAULT_SLOTS, Settings


@pytest.mark.unit
class TestSettings:
    def test_valores_por_defecto(self, monkeypatch):
        monkeypatch.delenv("CLINICA_SLOTS", raising=False)
        monkeypatch.delenv("CLINICA_LOG_JSON", raising=False)

        s = Settings(_env_file=None)

        assert s.slots == DEFAULT_SLOTS
        assert s.jwt_algorithm == "HS256"
        assert s.log_json is False

    def test_variables_con_prefijo_y_jwt_sin_prefijo(self, monkeypatch):
        monkeypatch.setenv("CLINICA_LOG_JSON", "true")
        monkeypatch.setenv("CLINICA_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("JWT_SECRET", "otro-secreto")
        monkeypatch.setenv("JWT_EXPIRE_MINUTES", "15")

        s = Settings(_env_file=None)

        assert s.log_json is True
        assert s.log_level == "DEBUG"
        assert s.jwt_secret == "otro-secreto"
        assert s.jwt_expire_minutes == 15


@pytest.mark.unit
class TestSlots:
    def test_override_se_ordena_y_sin_duplicados(self, monkeypatch):
        monkeypatch.setenv("CLINICA_SLOTS", " 14:00,09:30,14:00, 10:00 ")

        assert Settings(_env_file=None).slots == ("09:30", "10:00", "14:00")

    def test_override_vacio_usa_los_de_siempre(self, monkeypatch):
        monkeypatch.setenv("CLINICA_SLOTS", " , ")

        assert Settings(_env_file=None).slots == DEFAULT_SLOTS

    @pytest.mark.parametrize("valor", ["9:00,16:00", "12:30,24:00", "12:60", "mediodia"])
    def test_hora_mal_formada_se_rechaza(self, monkeypatch, valor):
        # "9:00" ordenado como texto quedaría después de "16:00"
        monkeypatch.setenv("CLINICA_SLOTS", valor)

        with pytest.raises(ValidationError, match="HH:MM"):
            Settings(_env_file=None)
