from __future__ import annotations

import argparse
from datetime import date

from clinica.auth_service import crea_usuario, lista_usuarios
from clinica.ciclos import FinDeMes, ciclos_anio, genera_ciclos_anio
from clinica.logging_config import configure_logging
from clinica.reportes import FiltrosReporte, reporte_detallado, reporte_mensual
from clinica.seed import seed_admin, seed_pacientes_demo
from clinica.services import crea_paciente, disponibilidad, init_db, lista_pacientes


def _fin_de_mes(valor: str) -> FinDeMes:
    """Formato MES=AAAA-MM-DD, ej: 1=2024-01-28"""
    try:
        mes, fecha = valor.split("=", 1)
        return FinDeMes(int(mes), date.fromisoformat(fecha))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Formato inválido '{valor}', se espera MES=AAAA-MM-DD") from e


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    seed_admin()
    if args.demo:
        print(f"Pacientes demo creados: {seed_pacientes_demo()['creados']}")
    print("DB inicializada.")


def cmd_add_user(args: argparse.Namespace) -> None:
    u = crea_usuario(args.username, args.password, args.rol)
    print(f"Usuario creado: {u['id']} ({u['username']}, {u['rol']})")


def cmd_add_patient(args: argparse.Namespace) -> None:
    p = crea_paciente(
        args.rut,
        args.nombre,
        args.apellido,
        date.fromisoformat(args.nacimiento),
        args.genero,
        args.telefono,
        args.direccion,
    )
    print(f"Paciente creado: {p['id']}")


def cmd_list(args: argparse.Namespace) -> None:
    if args.entity == "patients":
        for p in lista_pacientes():
            print(f"{p['id']} | {p['rut']} | {p['apellido']} {p['nombre']} | {p['genero']}")
    elif args.entity == "users":
        for u in lista_usuarios():
            print(f"{u['id']} | {u['username']} | {u['rol']}")
    elif args.entity == "cycles":
        for c in ciclos_anio(args.anio):
            print(f"{c['anio']}-{c['mes']:02d} | {c['fecha_inicio']} → {c['fecha_fin']}")


def cmd_generate_cycles(args: argparse.Namespace) -> None:
    for c in genera_ciclos_anio(args.anio, args.fin):
        print(f"{c['anio']}-{c['mes']:02d} | {c['fecha_inicio']} → {c['fecha_fin']}")


def cmd_availability(args: argparse.Namespace) -> None:
    for sl in disponibilidad(date.fromisoformat(args.fecha)):
        if sl["disponible"]:
            print(f"{sl['hora']} | libre")
        else:
            p = sl["paciente"]
            print(f"{sl['hora']} | ocupado | {p['rut']} {p['nombre']} {p['apellido']}")


def cmd_report_monthly(args: argparse.Namespace) -> None:
    r = reporte_mensual(args.anio, args.mes)
    print(f"Periodo {r['fecha_inicio']} → {r['fecha_fin']}")
    print(f"  avanzada      : {r['avanzada']}")
    print(f"  pie diabético : {r['pie_diabetico']}")
    print(f"  úlcera venosa : {r['ulcera_venosa']}")
    print(f"  total         : {r['total_general']}")


def cmd_report_detailed(args: argparse.Namespace) -> None:
    filtros = FiltrosReporte(
        anio=args.anio,
        trimestre=args.trimestre,
        genero=args.genero,
        edad_min=args.edad_min,
        edad_max=args.edad_max,
    )
    r = reporte_detallado(filtros)
    if r["fecha_inicio"]:
        print(f"Periodo {r['fecha_inicio']} → {r['fecha_fin']}")
    for grupo, datos in r["resumen"].items():
        por_genero = ", ".join(f"{g}: {n}" for g, n in sorted(datos["por_genero"].items())) or "-"
        print(f"{grupo}: {datos['total']} ({por_genero})")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="clinica-cli", description="CLI Clínica Curaciones")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea la DB y el admin inicial")
    p_init.add_argument("--demo", action="store_true", help="Carga también pacientes de ejemplo")
    p_init.set_defaults(func=cmd_init)

    p_user = sub.add_parser("add-user", help="Crea usuario")
    p_user.add_argument("--username", required=True)
    p_user.add_argument("--password", required=True)
    p_user.add_argument("--rol", choices=["admin", "user"], default="user")
    p_user.set_defaults(func=cmd_add_user)

    p_addp = sub.add_parser("add-patient", help="Crea paciente")
    p_addp.add_argument("--rut", required=True)
    p_addp.add_argument("--nombre", required=True)
    p_addp.add_argument("--apellido", required=True)
    p_addp.add_argument("--nacimiento", required=True, help="AAAA-MM-DD")
    p_addp.add_argument("--genero", required=True)
    p_addp.add_argument("--telefono", default=None)
    p_addp.add_argument("--direccion", default=None)
    p_addp.set_defaults(func=cmd_add_patient)

    p_list = sub.add_parser("list", help="Lista entidades")
    p_list.add_argument("entity", choices=["patients", "users", "cycles"])
    p_list.add_argument("--anio", type=int, default=date.today().year, help="Año (solo cycles)")
    p_list.set_defaults(func=cmd_list)

    p_gen = sub.add_parser("generate-cycles", help="Genera los ciclos encadenados de un año")
    p_gen.add_argument("--anio", type=int, required=True)
    p_gen.add_argument("--fin", type=_fin_de_mes, nargs="+", required=True, help="MES=AAAA-MM-DD (uno por mes)")
    p_gen.set_defaults(func=cmd_generate_cycles)

    p_disp = sub.add_parser("availability", help="Bloques libres/ocupados de un día")
    p_disp.add_argument("fecha", help="AAAA-MM-DD")
    p_disp.set_defaults(func=cmd_availability)

    p_rm = sub.add_parser("report-monthly", help="Reporte mensual por tipo de curación")
    p_rm.add_argument("--anio", type=int, required=True)
    p_rm.add_argument("--mes", type=int, choices=range(1, 13), required=True)
    p_rm.set_defaults(func=cmd_report_monthly)

    p_rd = sub.add_parser("report-detailed", help="Reporte detallado (trimestral)")
    p_rd.add_argument("--anio", type=int, default=None)
    p_rd.add_argument("--trimestre", type=int, choices=range(1, 5), default=None)
    p_rd.add_argument("--genero", default=None)
    p_rd.add_argument("--edad-min", type=int, default=None)
    p_rd.add_argument("--edad-max", type=int, default=None)
    p_rd.set_defaults(func=cmd_report_detailed)

    return p


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # garantiza las tablas
    args.func(args)


if __name__ == "__main__":
    main()
