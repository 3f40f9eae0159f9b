# pages/Clientes.py
import pandas as pd
import streamlit as st

from services.app_context import (
    EXECUTORES,
    confirmar_acao_pendente,
    get_context,
    init_context,
    limpar_acao_pendente,
    obter_acao_pendente,
)
from services.data_loader import garantir_dados
from services.layout import aplicar_tema
from services.permissions import require_login
from services.status import status_badge
from services.ui import section
from services.utils import fmt_brl, fmt_date_br, key_for, nome_cliente, rotulo_cliente

st.set_page_config(page_title="Clientes", page_icon="👥", layout="wide")
st.title("👥 Clientes")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

clientes = ctx["clientes"]
acao = obter_acao_pendente(ctx)
agendando = acao is not None and acao.tipo == "novo_agendamento"

if agendando:
    st.info(
        f"Cadastre o cliente para concluir o agendamento de "
        f"{fmt_date_br(acao.dados.get('data'))} às {acao.dados.get('hora')}."
    )
    if st.button("Cancelar agendamento"):
        limpar_acao_pendente(ctx)
        st.rerun()

# --------------------------------------------------
# Novo cliente
# --------------------------------------------------
with st.expander("➕ Novo cliente", expanded=agendando):
    with st.form("novo_cliente", clear_on_submit=True):
        c1, c2 = st.columns(2)
        nome = c1.text_input("Nome completo")
        whatsapp = c2.text_input("WhatsApp", placeholder="(87) 99999-9999")
        c3, c4 = st.columns(2)
        apelido = c3.text_input("Apelido (opcional)")
        cpf = c4.text_input("CPF (opcional)")
        observacao = st.text_area("Observações", height=80)
        salvar = st.form_submit_button("Salvar", type="primary")

if salvar:
    try:
        novo = clientes.adicionar(nome, whatsapp, apelido or None, cpf or None, observacao or None)
        st.success(f"Cliente '{novo.nome}' cadastrado.")
        if agendando:
            acao.dados.update({
                "cliente": rotulo_cliente(novo.nome, novo.whatsapp),
                "cliente_id": novo.id,
            })
            confirmar_acao_pendente(ctx, EXECUTORES)
            if acao.redirecionar:
                st.switch_page(acao.redirecionar)
        st.rerun()
    except Exception as e:
        st.error(str(e))

st.divider()

# --------------------------------------------------
# Busca
# --------------------------------------------------
busca = st.text_input("🔍 Buscar", placeholder="Nome, apelido, telefone ou CPF")
encontrados = clientes.buscar(busca)
section("📚 Cadastro", f"{len(encontrados)} cliente(s)")

if not encontrados:
    st.info("Nenhum cliente encontrado.")


def _historico(cliente) -> pd.DataFrame:
    txs = [
        t for t in ctx["transacoes"].itens
        if t.cliente_id == cliente.id
        or (t.cliente_id is None and nome_cliente(t.cliente).lower() == cliente.nome.lower())
    ]
    return pd.DataFrame([
        {"Data": fmt_date_br(t.data), "Serviço/Produto": t.servico, "Pagamento": t.forma_pagamento, "Valor": fmt_brl(t.valor)}
        for t in txs
    ])


for c in encontrados:
    titulo = c.nome + (f" ({c.apelido})" if c.apelido else "") + f" · {c.whatsapp}"
    with st.expander(titulo):
        t_dados, t_hist, t_fiado = st.tabs(["Dados", "Histórico", "Fiado"])

        with t_dados:
            with st.form(key_for("editar_cliente", c.id)):
                e1, e2 = st.columns(2)
                novo_nome = e1.text_input("Nome", value=c.nome)
                novo_whats = e2.text_input("WhatsApp", value=c.whatsapp)
                e3, e4 = st.columns(2)
                novo_apelido = e3.text_input("Apelido", value=c.apelido or "")
                novo_cpf = e4.text_input("CPF", value=c.cpf or "")
                nova_obs = st.text_area("Observações", value=c.observacao or "", height=80)
                ok = st.form_submit_button("Salvar alterações")
            if ok:
                try:
                    clientes.atualizar(
                        c.id,
                        nome=novo_nome if novo_nome != c.nome else None,
                        whatsapp=novo_whats if novo_whats != c.whatsapp else None,
                        apelido=novo_apelido,
                        cpf=novo_cpf,
                        observacao=nova_obs,
                    )
                    st.success("Cliente atualizado (agenda, vendas e fiado incluídos).")
                    st.rerun()
                except Exception as e:
                    st.error(str(e))

            confirmar = st.checkbox("Confirmo a exclusão", key=key_for("confirma_excluir", c.id))
            if st.button("🗑️ Excluir cliente", key=key_for("excluir_cliente", c.id), disabled=not confirmar):
                try:
                    clientes.excluir(c.id)
                    st.success("Cliente excluído. Os registros antigos mantêm o nome.")
                    st.rerun()
                except Exception as e:
                    st.error(str(e))

        with t_hist:
            hist = _historico(c)
            if hist.empty:
                st.info("Sem atendimentos ou compras.")
            else:
                st.dataframe(hist, use_container_width=True, hide_index=True)

        with t_fiado:
            vendas = ctx["fiado"].vendas_do_cliente(cliente_id=c.id, nome=c.nome)
            if not vendas:
                st.info("Nenhuma venda no fiado.")
            for v in vendas:
                st.write(
                    f"{fmt_date_br(v.data)} · {v.produtos} · {fmt_brl(v.valor_total)} · "
                    f"restante {fmt_brl(v.valor_restante)} · {status_badge(v.status)}"
                )
