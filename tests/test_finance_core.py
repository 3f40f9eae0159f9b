from datetime import date

import pytest

from services.competencia import fim_do_mes, label_competencia, meses_entre
from services.finance_core import add_months, dividir_parcelas, parse_valor, vencimentos


@pytest.mark.parametrize("entrada,esperado", [
    ("25,50", 25.5),
    ("1.250,00", 1250.0),
    ("R$ 30", 30.0),
    (" 12.5 ", 12.5),
    (40, 40.0),
    (19.999, 20.0),
])
def test_parse_valor(entrada, esperado):
    assert parse_valor(entrada) == esperado


@pytest.mark.parametrize("entrada", ["abc", "-1", -3, "nan"])
def test_parse_valor_invalido(entrada):
    with pytest.raises(ValueError):
        parse_valor(entrada)


def test_dividir_parcelas_soma_exata():
    assert dividir_parcelas(100, 3) == [33.33, 33.33, 33.34]
    assert dividir_parcelas("10", 4) == [2.5, 2.5, 2.5, 2.5]
    assert round(sum(dividir_parcelas(99.99, 7)), 2) == 99.99
    with pytest.raises(ValueError):
        dividir_parcelas(10, 0)


def test_dividir_parcelas_centavos_nunca_negativos():
    valores = dividir_parcelas(0.30, 20)
    assert valores[:-1] == [0.01] * 19
    assert valores[-1] == 0.11
    assert round(sum(valores), 2) == 0.30
    assert dividir_parcelas(0.05, 3) == [0.01, 0.01, 0.03]


def test_dividir_parcelas_rejeita_total_menor_que_um_centavo_por_parcela():
    with pytest.raises(ValueError):
        dividir_parcelas(0.05, 6)


def test_add_months_ajusta_fim_do_mes():
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    assert add_months(date(2024, 11, 15), 3) == date(2025, 2, 15)


def test_vencimentos_mensais():
    assert vencimentos(date(2024, 1, 31), 3) == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]


def test_competencia():
    assert label_competencia("2026-03") == "MAR/26"
    assert label_competencia("março") == "março"
    assert fim_do_mes(date(2024, 2, 10)) == date(2024, 2, 29)
    assert meses_entre(date(2024, 11, 20), date(2025, 1, 5)) == [
        date(2024, 11, 1), date(2024, 12, 1), date(2025, 1, 1),
    ]
