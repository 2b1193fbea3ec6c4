"""
Backend applicativo Clinica Curaciones.

Estructura:
- config.py         : configuración desde variables de entorno (.env)
- logging_config.py : logging estructurado (structlog)
- db.py             : engine y sesiones SQLAlchemy
- models.py         : modelos ORM (pacientes, curaciones, ciclos) y enums
- ciclos.py         : ciclos mensuales (rango efectivo, generación anual)
- services.py       : pacientes, curaciones, agenda y disponibilidad
- reportes.py       : reporte mensual y reporte detallado (trimestral)
- auth_*.py         : usuarios, roles y JWT
- seed.py           : datos iniciales (admin, pacientes demo)
- cli.py            : operaciones administrativas por línea de comandos
- api_main.py       : API HTTP (FastAPI)
"""
