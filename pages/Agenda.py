# pages/Agenda.py
from datetime import date, datetime, time

import pandas as pd
import streamlit as st

from services.app_context import (
    EXECUTORES,
    AcaoPendente,
    confirmar_acao_pendente,
    definir_acao_pendente,
    get_context,
    init_context,
    limpar_acao_pendente,
    obter_acao_pendente,
)
from services.data_loader import garantir_dados
from services.layout import aplicar_tema
from services.permissions import require_login
from services.schemas import FORMA_FIADO, FORMAS_PAGAMENTO
from services.status import (
    AGENDAMENTO_ATENDIDO,
    AGENDAMENTO_CHEGOU,
    AGENDAMENTO_CONFIRMADO,
    proximo_status_agendamento,
    status_badge,
)
from services.ui import card, section
from services.utils import fmt_brl, fmt_date_br, key_for, nome_cliente, rotulo_cliente, telefone_cliente

st.set_page_config(page_title="Agenda", page_icon="📅", layout="wide")
st.title("📅 Agenda")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

agenda = ctx["agendamentos"]
servicos = ctx["servicos"]
clientes = ctx["clientes"]

# Fiado só na venda de produtos; atendimento é pago na hora
formas_atendimento = [f for f in FORMAS_PAGAMENTO if f != FORMA_FIADO]


def _concluir(acao: AcaoPendente, msg: str):
    st.success(msg)
    if acao.redirecionar:
        st.switch_page(acao.redirecionar)
    st.rerun()


# --------------------------------------------------
# Ação pendente (vinda do painel ou desta página)
# --------------------------------------------------
acao = obter_acao_pendente(ctx)
if acao and acao.tipo in ("finalizar_agendamento", "editar_agendamento"):
    ag = agenda.por_id(acao.entidade)
    if ag is None:
        st.warning("O agendamento selecionado não existe mais.")
        limpar_acao_pendente(ctx)
    elif acao.tipo == "finalizar_agendamento":
        section(f"✔️ Finalizar atendimento — {nome_cliente(ag.cliente)}", f"{fmt_date_br(ag.data)} às {ag.hora}")
        nomes_servicos = [s.nome for s in servicos.itens]
        pre = [s.strip() for s in ag.servico.split(",") if s.strip() in nomes_servicos]

        escolhidos = st.multiselect("Serviços realizados", nomes_servicos, default=pre)
        sugerido = sum(servicos.preco_de(n) or 0.0 for n in escolhidos)
        with st.form("finalizar"):
            c1, c2, c3 = st.columns(3)
            subtotal = c1.number_input("Subtotal (R$)", min_value=0.0, step=1.0, value=float(sugerido))
            desconto = c2.number_input("Desconto (R$)", min_value=0.0, step=1.0, value=0.0)
            formas = c3.multiselect("Pagamento", formas_atendimento, default=["PIX"])
            st.caption(f"Total: {fmt_brl(max(subtotal - desconto, 0.0))}")
            ok = st.form_submit_button("Confirmar", type="primary")
        cancelar = st.button("Cancelar", key="cancelar_finalizar")

        if ok:
            acao.dados = {
                "servico": ", ".join(escolhidos) or ag.servico,
                "forma_pagamento": ", ".join(formas),
                "subtotal": subtotal,
                "desconto": desconto,
            }
            try:
                tx = confirmar_acao_pendente(ctx, EXECUTORES)
                _concluir(acao, f"Atendimento finalizado: {fmt_brl(tx.valor)}.")
            except Exception as e:
                st.error(f"Falha ao finalizar: {e}")
        if cancelar:
            limpar_acao_pendente(ctx)
            st.rerun()
        st.divider()
    else:
        section(f"✏️ Editar agendamento — {nome_cliente(ag.cliente)}")
        with st.form("editar_agendamento"):
            c1, c2, c3 = st.columns(3)
            novo_servico = c1.text_input("Serviço", value=ag.servico)
            nova_data = c2.date_input("Data", value=pd.to_datetime(ag.data).date())
            nova_hora = c3.time_input("Horário", value=datetime.strptime(ag.hora[:5], "%H:%M").time())
            ok = st.form_submit_button("Salvar", type="primary")
        cancelar = st.button("Cancelar", key="cancelar_edicao")

        if ok:
            acao.dados = {
                "servico": novo_servico,
                "data": nova_data.isoformat(),
                "hora": nova_hora.strftime("%H:%M"),
            }
            try:
                confirmar_acao_pendente(ctx, EXECUTORES)
                _concluir(acao, "Agendamento atualizado.")
            except Exception as e:
                st.error(f"Falha ao salvar: {e}")
        if cancelar:
            limpar_acao_pendente(ctx)
            st.rerun()
        st.divider()

# --------------------------------------------------
# Novo agendamento
# --------------------------------------------------
with st.expander("➕ Novo agendamento", expanded=False):
    NOVO = "➕ Cadastrar novo cliente"
    opcoes = [None, NOVO] + clientes.itens
    cliente_sel = st.selectbox(
        "Cliente",
        options=opcoes,
        format_func=lambda c: "Selecione…" if c is None else (c if isinstance(c, str) else f"{c.nome} · {c.whatsapp}"),
        key="novo_ag_cliente",
    )
    c1, c2, c3 = st.columns(3)
    serv_sel = c1.multiselect("Serviço", [s.nome for s in servicos.itens], key="novo_ag_servico")
    data_sel = c2.date_input("Data", value=date.today(), key="novo_ag_data")
    hora_sel = c3.time_input("Horário", value=time(9, 0), step=900, key="novo_ag_hora")

    if st.button("Agendar", type="primary"):
        dados = {
            "servico": ", ".join(serv_sel),
            "data": data_sel.isoformat(),
            "hora": hora_sel.strftime("%H:%M"),
        }
        if cliente_sel == NOVO:
            # Cadastro do cliente conclui o agendamento (página Clientes)
            definir_acao_pendente(ctx, AcaoPendente(
                tipo="novo_agendamento",
                dados=dados,
                redirecionar="pages/Agenda.py",
            ))
            st.switch_page("pages/Clientes.py")
        elif cliente_sel is None:
            st.error("Selecione o cliente.")
        else:
            try:
                agenda.adicionar(
                    cliente=rotulo_cliente(cliente_sel.nome, cliente_sel.whatsapp),
                    cliente_id=cliente_sel.id,
                    **dados,
                )
                st.success("Agendamento criado.")
                st.rerun()
            except Exception as e:
                st.error(f"Falha ao agendar: {e}")

st.divider()

# --------------------------------------------------
# Filtros
# --------------------------------------------------
f1, f2 = st.columns([2, 3])
dia = f1.date_input("Dia", value=date.today(), key="agenda_dia")
filtro_status = f2.multiselect(
    "Status",
    [AGENDAMENTO_CONFIRMADO, AGENDAMENTO_CHEGOU, AGENDAMENTO_ATENDIDO],
    default=[AGENDAMENTO_CONFIRMADO, AGENDAMENTO_CHEGOU],
    format_func=status_badge,
)

do_dia = [a for a in agenda.do_dia(dia.isoformat()) if a.status in filtro_status]

section(f"📋 {fmt_date_br(dia)}", f"{len(do_dia)} agendamento(s)")
if not do_dia:
    st.info("Nenhum agendamento com esses filtros.")

for ag in do_dia:
    linhas = [f"🕒 {ag.hora} · ✂️ {ag.servico}"]
    fone = telefone_cliente(ag.cliente)
    if fone:
        linhas.append(f"📞 {fone}")
    card(nome_cliente(ag.cliente), linhas, status=ag.status)

    b1, b2, b3, b4 = st.columns(4)
    prox = proximo_status_agendamento(ag.status)
    if prox == AGENDAMENTO_CHEGOU:
        if b1.button("💈 Chegou", key=key_for("chegou", ag.id), use_container_width=True):
            try:
                agenda.atualizar_status(ag.id, AGENDAMENTO_CHEGOU)
                st.rerun()
            except Exception as e:
                st.error(f"Falha ao atualizar status: {e}")
    if prox is not None:
        if b2.button("✔️ Finalizar", key=key_for("finalizar", ag.id), use_container_width=True):
            definir_acao_pendente(ctx, AcaoPendente(tipo="finalizar_agendamento", entidade=ag.id))
            st.rerun()
        if b3.button("✏️ Editar", key=key_for("editar", ag.id), use_container_width=True):
            definir_acao_pendente(ctx, AcaoPendente(tipo="editar_agendamento", entidade=ag.id))
            st.rerun()
    if b4.button("🗑️ Excluir", key=key_for("excluir", ag.id), use_container_width=True):
        try:
            agenda.excluir(ag.id)
            st.rerun()
        except Exception as e:
            st.error(f"Falha ao excluir: {e}")
