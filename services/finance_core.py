# services/finance_core.py
from datetime import date
import calendar
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP, InvalidOperation, getcontext
from typing import Any

getcontext().rounding = ROUND_HALF_UP

CENTAVO = Decimal("0.01")


# ---------------------------------------------------------
# Utilitário: adicionar meses mantendo o dia válido
# ---------------------------------------------------------
def add_months(d: date, months: int) -> date:
    """Adiciona 'months' meses à data 'd', ajustando o dia para o último dia do mês quando necessário."""
    year = d.year + (d.month - 1 + months) // 12
    month = (d.month - 1 + months) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(d.day, last_day))


# ---------------------------------------------------------
# Dinheiro em Decimal
# ---------------------------------------------------------
def to_decimal(v: Any) -> Decimal:
    """Converte float/int/str para Decimal com 2 casas (via str, sem ruído de float)."""
    if v is None:
        return Decimal("0.00")
    return Decimal(str(v)).quantize(CENTAVO)


def parse_valor(v: Any) -> float:
    """
    Lê um valor monetário digitado ('25,50', '1.250,00', '30', 30.0).
    Levanta ValueError para texto não numérico ou negativo.
    """
    if isinstance(v, (int, float, Decimal)):
        dec = Decimal(str(v))
    else:
        s = str(v or "").strip().replace("R$", "").strip()
        if "," in s:
            s = s.replace(".", "").replace(",", ".")
        try:
            dec = Decimal(s)
        except InvalidOperation:
            raise ValueError(f"Valor inválido: {v!r}")
    if not dec.is_finite():
        raise ValueError(f"Valor inválido: {v!r}")
    if dec < 0:
        raise ValueError("Valor não pode ser negativo.")
    return float(dec.quantize(CENTAVO))


# ---------------------------------------------------------
# Parcelamento com precisão contábil
# ---------------------------------------------------------
def dividir_parcelas(total: Any, qtd_parcelas: int) -> list[float]:
    """
    Divide o total em parcelas iguais (Decimal, 2 casas, truncadas).
    A última parcela absorve a sobra, então a soma das parcelas é sempre
    igual ao total e nenhuma parcela fica negativa.
    """
    if qtd_parcelas < 1:
        raise ValueError("Qtd de parcelas deve ser >= 1")

    total_dec = to_decimal(total)
    base_valor = (total_dec / Decimal(qtd_parcelas)).quantize(CENTAVO, rounding=ROUND_DOWN)
    if base_valor < CENTAVO:
        raise ValueError(f"Total {total_dec} não cobre {qtd_parcelas} parcelas de pelo menos R$ 0,01.")

    valores = [base_valor] * qtd_parcelas
    ajuste_final = (total_dec - sum(valores)).quantize(CENTAVO)
    valores[-1] += ajuste_final

    return [float(v) for v in valores]


def vencimentos(primeiro_vencimento: date, qtd_parcelas: int, intervalo_meses: int = 1) -> list[date]:
    """Datas de vencimento mês a mês a partir do primeiro vencimento."""
    return [add_months(primeiro_vencimento, i * intervalo_meses) for i in range(qtd_parcelas)]
