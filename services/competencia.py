import calendar
from datetime import date

MESES = ["JAN", "FEV", "MAR", "ABR", "MAI", "JUN", "JUL", "AGO", "SET", "OUT", "NOV", "DEZ"]


def competencia_from_date(d: date) -> str:
    return f"{d.year}-{d.month:02d}"


def label_competencia(comp: str) -> str:
    """'2026-03' -> 'MAR/26'. Texto fora do padrão volta como veio."""
    try:
        y, m = comp.split("-")
        return f"{MESES[int(m) - 1]}/{y[-2:]}"
    except (ValueError, IndexError):
        return comp


def fim_do_mes(d: date) -> date:
    return date(d.year, d.month, calendar.monthrange(d.year, d.month)[1])


def meses_entre(inicio: date, fim: date) -> list[date]:
    """Primeiro dia de cada mês de `inicio` até `fim` (inclusive)."""
    out = []
    d = inicio.replace(day=1)
    while d <= fim:
        out.append(d)
        d = date(d.year + d.month // 12, d.month % 12 + 1, 1)
    return out
