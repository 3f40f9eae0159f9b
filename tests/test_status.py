from datetime import date

import pytest

from services.status import (
    AGENDAMENTO_ATENDIDO,
    AGENDAMENTO_CHEGOU,
    AGENDAMENTO_CONFIRMADO,
    PARCELA_ATRASADA,
    PARCELA_PAGA,
    PARCELA_PENDENTE,
    TransicaoInvalida,
    VENDA_ATRASADA,
    VENDA_EM_ABERTO,
    VENDA_QUITADA,
    parcela_vencida,
    proximo_status_agendamento,
    status_venda,
    validar_transicao_agendamento,
)


def test_status_venda():
    assert status_venda([{"status": PARCELA_PAGA}, {"status": PARCELA_PAGA}]) == VENDA_QUITADA
    assert status_venda([{"status": PARCELA_PAGA}, {"status": PARCELA_ATRASADA}]) == VENDA_ATRASADA
    assert status_venda([{"status": PARCELA_PAGA}, {"status": PARCELA_PENDENTE}]) == VENDA_EM_ABERTO
    assert status_venda([]) == VENDA_EM_ABERTO


def test_parcela_vencida():
    hoje = date(2024, 3, 10)
    assert parcela_vencida({"status": PARCELA_PENDENTE, "vencimento": "2024-03-09"}, hoje)
    assert not parcela_vencida({"status": PARCELA_PENDENTE, "vencimento": "2024-03-10"}, hoje)
    assert not parcela_vencida({"status": PARCELA_PAGA, "vencimento": "2024-01-01"}, hoje)


def test_transicoes_permitidas():
    validar_transicao_agendamento(AGENDAMENTO_CONFIRMADO, AGENDAMENTO_CHEGOU)
    validar_transicao_agendamento(AGENDAMENTO_CHEGOU, AGENDAMENTO_ATENDIDO)
    # pular etapa para frente
    validar_transicao_agendamento(AGENDAMENTO_CONFIRMADO, AGENDAMENTO_ATENDIDO)


@pytest.mark.parametrize("atual,novo", [
    (AGENDAMENTO_ATENDIDO, AGENDAMENTO_CONFIRMADO),
    (AGENDAMENTO_CHEGOU, AGENDAMENTO_CHEGOU),
    (AGENDAMENTO_CONFIRMADO, "Cancelado"),
])
def test_transicoes_rejeitadas(atual, novo):
    with pytest.raises(TransicaoInvalida):
        validar_transicao_agendamento(atual, novo)


def test_proximo_status():
    assert proximo_status_agendamento(AGENDAMENTO_CONFIRMADO) == AGENDAMENTO_CHEGOU
    assert proximo_status_agendamento(AGENDAMENTO_ATENDIDO) is None
