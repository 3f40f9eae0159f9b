import pytest

from services.agendamentos import AgendamentosService
from services.app_context import (
    EXECUTORES,
    AcaoPendente,
    alternar_tema,
    avisar_depois,
    confirmar_acao_pendente,
    consumir_avisos,
    definir_acao_pendente,
    montar_servicos,
    obter_acao_pendente,
)
from services.data_loader import carregar_dados
from services.status import AGENDAMENTO_ATENDIDO
from supabase_service import SupabaseError


@pytest.fixture
def ctx(db):
    c = {"db": db}
    c.update(montar_servicos(db))
    return c


def test_montar_servicos_compartilha_transacoes_e_configuracoes(ctx):
    assert ctx["fiado"].transacoes is ctx["transacoes"]
    assert ctx["fiado"].configuracoes is ctx["configuracoes"]
    assert isinstance(ctx["agendamentos"], AgendamentosService)
    assert ctx["clientes"].bus is ctx["bus"]


def test_alternar_tema():
    ctx = {}
    assert alternar_tema(ctx) == "escuro"
    assert alternar_tema(ctx) == "claro"


def test_aviso_sobrevive_ao_rerun_e_e_exibido_uma_vez():
    ctx = {}
    assert consumir_avisos(ctx) == []

    avisar_depois(ctx, "Parcela 2 paga, mas o lançamento no caixa falhou. Verifique os logs.")

    assert consumir_avisos(ctx) == ["Parcela 2 paga, mas o lançamento no caixa falhou. Verifique os logs."]
    assert consumir_avisos(ctx) == []


def test_acao_de_tipo_desconhecido():
    with pytest.raises(ValueError):
        AcaoPendente("apagar_tudo")


def test_confirmar_sem_acao_ou_sem_executor(ctx):
    with pytest.raises(ValueError):
        confirmar_acao_pendente(ctx, EXECUTORES)

    definir_acao_pendente(ctx, AcaoPendente("editar_transacao", entidade=1))
    with pytest.raises(ValueError, match="Sem executor"):
        confirmar_acao_pendente(ctx, {})
    assert obter_acao_pendente(ctx) is not None


def test_confirmar_finalizacao_limpa_o_slot(ctx, db):
    ag = ctx["agendamentos"].adicionar(cliente="Pedro", servico="Corte", data="2024-05-10", hora="10:00")
    definir_acao_pendente(ctx, AcaoPendente(
        "finalizar_agendamento",
        entidade=ag.id,
        dados={"forma_pagamento": "PIX", "subtotal": 30, "data": "2024-05-10"},
        redirecionar="app.py",
    ))

    tx = confirmar_acao_pendente(ctx, EXECUTORES)

    assert tx.valor == 30.0
    assert ctx["agendamentos"].por_id(ag.id).status == AGENDAMENTO_ATENDIDO
    assert obter_acao_pendente(ctx) is None


def test_falha_mantem_a_acao_para_nova_tentativa(ctx, db, erro_remoto):
    definir_acao_pendente(ctx, AcaoPendente(
        "novo_agendamento",
        dados={"cliente": "Ana", "servico": "Barba", "data": "2024-05-10", "hora": "11:00"},
    ))
    db.falhar[("insert", "appointments")] = erro_remoto

    with pytest.raises(SupabaseError):
        confirmar_acao_pendente(ctx, EXECUTORES)
    assert obter_acao_pendente(ctx).tipo == "novo_agendamento"

    ag = confirmar_acao_pendente(ctx, EXECUTORES)
    assert ag.cliente == "Ana"
    assert obter_acao_pendente(ctx) is None


def test_carregar_dados_uma_vez_por_sessao(ctx, db):
    carregar_dados(ctx)
    assert ctx["dados_carregados"] is True
    leituras = db.chamadas.count(("select", "clients"))

    carregar_dados(ctx)
    assert db.chamadas.count(("select", "clients")) == leituras

    carregar_dados(ctx, forcar=True)
    assert db.chamadas.count(("select", "clients")) == leituras + 1


def test_carregar_dados_tolera_falha_nos_atrasados(ctx, db, erro_remoto):
    db.falhar[("update", "installments")] = erro_remoto
    carregar_dados(ctx)
    assert ctx["dados_carregados"] is True
