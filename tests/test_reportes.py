"""Tests del reporte mensual y del reporte detallado (trimestral)."""

from datetime import date

import pytest

from clinica.models import GrupoReporte, TipoCuracion
from clinica.reportes import (
    FiltrosReporte,
    anios_antes,
    meses_trimestre,
    rango_trimestre,
    reporte_detallado,
    reporte_mensual,
)

HOY = date(2024, 6, 15)


@pytest.mark.unit
class TestReporteMensual:
    def test_sin_curaciones_todo_en_cero(self):
        r = reporte_mensual(2024, 2)

        assert r["fecha_inicio"] == date(2024, 2, 1)
        assert r["fecha_fin"] == date(2024, 2, 29)
        assert (r["avanzada"], r["pie_diabetico"], r["ulcera_venosa"], r["total_general"]) == (0, 0, 0, 0)

    def test_cuenta_por_tipo(self, nuevo_paciente, nueva_curacion):
        pid = nuevo_paciente()
        nueva_curacion(pid, date(2024, 5, 2), TipoCuracion.AVANZADA)
        nueva_curacion(pid, date(2024, 5, 3), TipoCuracion.AVANZADA)
        nueva_curacion(pid, date(2024, 5, 4), TipoCuracion.ULCERA_VENOSA)
        nueva_curacion(pid, date(2024, 6, 1), TipoCuracion.PIE_DIABETICO)

        r = reporte_mensual(2024, 5)

        assert r["avanzada"] == 2
        assert r["pie_diabetico"] == 0
        assert r["ulcera_venosa"] == 1
        assert r["total_general"] == 3

    def test_bordes_del_ciclo_inclusivos(self, nuevo_ciclo, nuevo_paciente, nueva_curacion):
        nuevo_ciclo(2024, 3, date(2024, 3, 5), date(2024, 4, 2))
        pid = nuevo_paciente()
        nueva_curacion(pid, date(2024, 3, 4))
        nueva_curacion(pid, date(2024, 3, 5))
        nueva_curacion(pid, date(2024, 4, 2))
        nueva_curacion(pid, date(2024, 4, 3))

        r = reporte_mensual(2024, 3)

        assert (r["fecha_inicio"], r["fecha_fin"]) == (date(2024, 3, 5), date(2024, 4, 2))
        assert r["total_general"] == 2


@pytest.mark.unit
class TestTrimestre:
    @pytest.mark.parametrize("trimestre, meses", [(1, (1, 3)), (2, (4, 6)), (3, (7, 9)), (4, (10, 12))])
    def test_meses_trimestre(self, trimestre, meses):
        assert meses_trimestre(trimestre) == meses

    def test_trimestre_invalido(self):
        with pytest.raises(ValueError):
            meses_trimestre(5)

    def test_rango_usa_primer_y_ultimo_mes(self, nuevo_ciclo):
        nuevo_ciclo(2024, 1, date(2023, 12, 28), date(2024, 1, 27))
        # el mes central no cambia los bordes
        nuevo_ciclo(2024, 2, date(2024, 1, 10), date(2024, 2, 10))
        nuevo_ciclo(2024, 3, date(2024, 2, 25), date(2024, 3, 30))

        assert rango_trimestre(2024, 1) == (date(2023, 12, 28), date(2024, 3, 30))

    def test_rango_calendario_sin_ciclos(self):
        assert rango_trimestre(2024, 4) == (date(2024, 10, 1), date(2024, 12, 31))


@pytest.mark.unit
class TestAniosAntes:
    def test_fecha_normal(self):
        assert anios_antes(date(2024, 6, 15), 20) == date(2004, 6, 15)

    def test_29_de_febrero(self):
        assert anios_antes(date(2024, 2, 29), 1) == date(2023, 2, 28)
        assert anios_antes(date(2024, 2, 29), 4) == date(2020, 2, 29)

    def test_anio_fuera_de_rango_no_se_disfraza(self):
        with pytest.raises(ValueError):
            anios_antes(date(2024, 6, 15), 5000)


@pytest.mark.unit
class TestReporteDetallado:
    def test_avanzada_y_pie_diabetico_se_agrupan(self, nuevo_paciente, nueva_curacion):
        pid = nuevo_paciente(genero="Femenino")
        nueva_curacion(pid, date(2024, 2, 1), TipoCuracion.AVANZADA)
        nueva_curacion(pid, date(2024, 2, 2), TipoCuracion.PIE_DIABETICO)
        nueva_curacion(pid, date(2024, 2, 3), TipoCuracion.ULCERA_VENOSA)

        resumen = reporte_detallado(FiltrosReporte(), hoy=HOY)["resumen"]

        assert resumen["avanzada"] == {"total": 2, "por_genero": {"Femenino": 2}}
        assert resumen["ulcera_venosa"] == {"total": 1, "por_genero": {"Femenino": 1}}

    def test_desglose_por_genero(self, nuevo_paciente, nueva_curacion):
        f = nuevo_paciente(genero="Femenino")
        m = nuevo_paciente(genero="Masculino")
        nueva_curacion(f, date(2024, 2, 1), TipoCuracion.PIE_DIABETICO)
        nueva_curacion(m, date(2024, 2, 1), TipoCuracion.AVANZADA)
        nueva_curacion(m, date(2024, 2, 2), TipoCuracion.PIE_DIABETICO)

        avanzada = reporte_detallado(FiltrosReporte(), hoy=HOY)["resumen"]["avanzada"]

        assert avanzada == {"total": 3, "por_genero": {"Femenino": 1, "Masculino": 2}}

    def test_filtro_trimestre_con_ciclos(self, nuevo_ciclo, nuevo_paciente, nueva_curacion):
        nuevo_ciclo(2024, 1, date(2023, 12, 28), date(2024, 1, 27))
        nuevo_ciclo(2024, 3, date(2024, 2, 25), date(2024, 3, 30))
        pid = nuevo_paciente()
        nueva_curacion(pid, date(2023, 12, 27))
        nueva_curacion(pid, date(2023, 12, 28))
        nueva_curacion(pid, date(2024, 3, 30))
        nueva_curacion(pid, date(2024, 3, 31))

        r = reporte_detallado(FiltrosReporte(anio=2024, trimestre=1), hoy=HOY)

        assert (r["fecha_inicio"], r["fecha_fin"]) == (date(2023, 12, 28), date(2024, 3, 30))
        assert r["resumen"]["avanzada"]["total"] == 2

    def test_trimestre_sin_anio_no_filtra_fechas(self, nuevo_paciente, nueva_curacion):
        pid = nuevo_paciente()
        nueva_curacion(pid, date(2020, 1, 1))
        nueva_curacion(pid, date(2024, 8, 1))

        r = reporte_detallado(FiltrosReporte(trimestre=1), hoy=HOY)

        assert r["fecha_inicio"] is None
        assert r["resumen"]["avanzada"]["total"] == 2

    def test_filtro_genero_exacto(self, nuevo_paciente, nueva_curacion):
        nueva_curacion(nuevo_paciente(genero="Femenino"), date(2024, 2, 1))
        nueva_curacion(nuevo_paciente(genero="Masculino"), date(2024, 2, 1), TipoCuracion.ULCERA_VENOSA)

        resumen = reporte_detallado(FiltrosReporte(genero="Masculino"), hoy=HOY)["resumen"]

        assert resumen["avanzada"]["total"] == 0
        assert resumen["ulcera_venosa"]["por_genero"] == {"Masculino": 1}

    def test_bordes_de_edad(self, nuevo_paciente, nueva_curacion):
        nacimientos = {
            "cumple_20_hoy": date(2004, 6, 15),
            "tiene_19": date(2004, 6, 16),
            "tiene_29": date(1994, 6, 16),
            "cumple_30_hoy": date(1994, 6, 15),
            "tiene_30": date(1994, 1, 10),
        }
        ids = {}
        for nombre, nacimiento in nacimientos.items():
            ids[nombre] = nuevo_paciente(genero=nombre, fecha_nacimiento=nacimiento)
            nueva_curacion(ids[nombre], date(2024, 2, 1))

        r = reporte_detallado(FiltrosReporte(edad_min=20, edad_max=29), hoy=HOY)

        assert r["resumen"]["avanzada"]["por_genero"] == {"cumple_20_hoy": 1, "tiene_29": 1}

    def test_solo_edad_min(self, nuevo_paciente, nueva_curacion):
        nueva_curacion(nuevo_paciente(genero="joven", fecha_nacimiento=date(2010, 1, 1)), date(2024, 2, 1))
        nueva_curacion(nuevo_paciente(genero="mayor", fecha_nacimiento=date(1950, 1, 1)), date(2024, 2, 1))

        r = reporte_detallado(FiltrosReporte(edad_min=65), hoy=HOY)

        assert r["resumen"]["avanzada"]["por_genero"] == {"mayor": 1}

    def test_eco_de_filtros_y_grupos_vacios(self):
        filtros = FiltrosReporte(anio=2024, trimestre=2, genero="Femenino", edad_min=18, edad_max=65)

        r = reporte_detallado(filtros, hoy=HOY)

        assert r["filtros"] == {
            "anio": 2024,
            "trimestre": 2,
            "genero": "Femenino",
            "edad_min": 18,
            "edad_max": 65,
        }
        assert set(r["resumen"]) == {g.value for g in GrupoReporte}
        assert all(g["total"] == 0 and g["por_genero"] == {} for g in r["resumen"].values())
