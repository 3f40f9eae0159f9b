# pages/Vendas.py
from datetime import date

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
from services.finance_core import add_months
from services.data_loader import garantir_dados
from services.layout import aplicar_tema
from services.permissions import require_login
from services.relatorios import VENDA_DE_PRODUTO, filtrar_transacoes, intervalo_periodo, preparar_transacoes_df
from services.schemas import FORMA_FIADO, FORMAS_PAGAMENTO, TIPO_PRODUTO, TIPO_SERVICO
from services.ui import responsive_dataframe, section
from services.utils import fmt_brl, fmt_date_br, key_for, nome_cliente, parse_date_safe, rotulo_cliente

st.set_page_config(page_title="Vendas e atendimentos", page_icon="🧾", layout="wide")
st.title("🧾 Vendas e atendimentos")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

transacoes = ctx["transacoes"]
fiado = ctx["fiado"]
fiado_ativo = ctx["configuracoes"].fiado_habilitado
formas_a_vista = [f for f in FORMAS_PAGAMENTO if f != FORMA_FIADO]

# --------------------------------------------------
# Edição pendente
# --------------------------------------------------
acao = obter_acao_pendente(ctx)
if acao and acao.tipo == "editar_transacao":
    tx = transacoes.por_id(acao.entidade)
    if tx is None:
        limpar_acao_pendente(ctx)
    else:
        section(f"✏️ Editar — {nome_cliente(tx.cliente) or VENDA_DE_PRODUTO}", fmt_date_br(tx.data))
        with st.form("editar_transacao"):
            e1, e2 = st.columns(2)
            servico = e1.text_input("Serviço / produto", value=tx.servico)
            forma = e2.text_input("Forma de pagamento", value=tx.forma_pagamento)
            e3, e4, e5 = st.columns(3)
            subtotal = e3.number_input("Subtotal (R$)", min_value=0.0, step=1.0, value=float(tx.subtotal))
            desconto = e4.number_input("Desconto (R$)", min_value=0.0, step=1.0, value=float(tx.desconto))
            data_tx = e5.date_input("Data", value=parse_date_safe(tx.data) or date.today())
            ok = st.form_submit_button("Salvar", type="primary")
        if st.button("Cancelar", key="cancelar_edicao_tx"):
            limpar_acao_pendente(ctx)
            st.rerun()
        if ok:
            if desconto > subtotal:
                st.error("Desconto maior que o subtotal.")
            else:
                acao.dados = {
                    "servico": servico.strip(),
                    "forma_pagamento": forma.strip(),
                    "subtotal": subtotal,
                    "desconto": desconto,
                    "valor": subtotal - desconto,
                    "data": data_tx.isoformat(),
                }
                try:
                    confirmar_acao_pendente(ctx, EXECUTORES)
                    st.success("Lançamento atualizado.")
                    st.rerun()
                except Exception as e:
                    st.error(f"Falha ao salvar: {e}")
        st.divider()

# --------------------------------------------------
# Novo lançamento
# --------------------------------------------------
section("➕ Novo lançamento")

tipo = st.radio(
    "Tipo",
    [TIPO_SERVICO, TIPO_PRODUTO],
    format_func=lambda t: "Atendimento avulso" if t == TIPO_SERVICO else "Venda de produto",
    horizontal=True,
)
catalogo = ctx["servicos"] if tipo == TIPO_SERVICO else ctx["produtos"]

SEM_CLIENTE = "— sem cliente —"
opcoes_cliente = [SEM_CLIENTE] + ctx["clientes"].itens
c1, c2 = st.columns(2)
cliente_sel = c1.selectbox(
    "Cliente",
    opcoes_cliente,
    format_func=lambda c: c if isinstance(c, str) else f"{c.nome} · {c.whatsapp}",
)
itens_sel = c2.multiselect("Itens", [i.nome for i in catalogo.itens])

sugerido = sum(catalogo.preco_de(n) or 0.0 for n in itens_sel)
c3, c4 = st.columns(2)
subtotal = c3.number_input("Subtotal (R$)", min_value=0.0, step=1.0, value=float(sugerido), key=key_for("subtotal", tipo, sugerido))
desconto = c4.number_input("Desconto (R$)", min_value=0.0, step=1.0, value=0.0)
total = max(subtotal - desconto, 0.0)

opcoes_forma = formas_a_vista + ([FORMA_FIADO] if fiado_ativo and tipo == TIPO_PRODUTO else [])
formas = st.multiselect("Pagamento", opcoes_forma, default=["PIX"])
no_fiado = FORMA_FIADO in formas

if no_fiado:
    st.caption("Venda no fiado: o valor é dividido em parcelas mensais.")
    f1, f2 = st.columns(2)
    n_parcelas = f1.number_input("Parcelas", min_value=1, max_value=24, value=1, step=1)
    primeiro_venc = f2.date_input("Primeiro vencimento", value=add_months(date.today(), 1))

st.metric("Total", fmt_brl(total))

if st.button("Registrar", type="primary"):
    cliente = None if isinstance(cliente_sel, str) else cliente_sel
    rotulo = rotulo_cliente(cliente.nome, cliente.whatsapp) if cliente else ""
    descricao = ", ".join(itens_sel)
    try:
        if no_fiado:
            if len(formas) > 1:
                raise ValueError("Fiado não pode ser combinado com outra forma de pagamento.")
            if cliente is None:
                raise ValueError("Venda no fiado exige cliente cadastrado.")
            venda, parcelas = fiado.criar_venda(
                cliente=rotulo,
                produtos=descricao,
                valor_total=total,
                numero_parcelas=int(n_parcelas),
                primeiro_vencimento=primeiro_venc,
                subtotal=subtotal,
                desconto=desconto,
                cliente_id=cliente.id,
            )
            st.success(f"Venda no fiado criada: {len(parcelas)}x de {fmt_brl(parcelas[0].valor)}.")
        else:
            if not descricao:
                raise ValueError("Selecione ao menos um item.")
            if tipo == TIPO_PRODUTO and not rotulo:
                rotulo = VENDA_DE_PRODUTO
            if not rotulo:
                raise ValueError("Selecione o cliente do atendimento.")
            tx = transacoes.adicionar(
                cliente=rotulo,
                servico=descricao,
                forma_pagamento=", ".join(formas),
                subtotal=subtotal,
                desconto=desconto,
                tipo=tipo,
                cliente_id=cliente.id if cliente else None,
            )
            st.success(f"Lançamento registrado: {fmt_brl(tx.valor)}.")
        st.rerun()
    except Exception as e:
        st.error(str(e))

st.divider()

# --------------------------------------------------
# Lançamentos recentes
# --------------------------------------------------
section("📋 Lançamentos")

l1, l2, l3 = st.columns([2, 2, 3])
periodo = l1.selectbox("Período", ["hoje", "semana", "mes", "tudo"], index=1,
                       format_func=lambda p: {"hoje": "Hoje", "semana": "7 dias", "mes": "Mês", "tudo": "Tudo"}[p])
tipo_lista = l2.selectbox("Tipo", ["todos", "servicos", "vendas"],
                          format_func=lambda t: {"todos": "Todos", "servicos": "Serviços", "vendas": "Vendas"}[t])
busca = l3.text_input("Buscar cliente ou serviço")

df = filtrar_transacoes(preparar_transacoes_df(transacoes.itens), intervalo_periodo(periodo), tipo_lista, busca=busca)

if df.empty:
    st.info("Nenhum lançamento no período.")
else:
    view = df.assign(
        Data=df["data_ref"].map(fmt_date_br),
        Cliente=df["cliente"].map(nome_cliente),
    )[["id", "Data", "Cliente", "servico", "forma_pagamento", "valor"]].rename(columns={
        "id": "ID", "servico": "Serviço/Produto", "forma_pagamento": "Pagamento", "valor": "Valor",
    })
    responsive_dataframe(view, moedas=("Valor",))
    st.caption(f"Total: {fmt_brl(df['valor'].sum())}")

    a1, a2, a3 = st.columns([2, 1, 1])
    alvo = a1.selectbox("Lançamento", df["id"].tolist(),
                        format_func=lambda i: next(
                            (f"#{i} · {nome_cliente(t.cliente) or VENDA_DE_PRODUTO} · {t.servico}" for t in transacoes.itens if t.id == i),
                            str(i)))
    if a2.button("✏️ Editar", use_container_width=True):
        definir_acao_pendente(ctx, AcaoPendente(tipo="editar_transacao", entidade=alvo))
        st.rerun()
    if a3.button("🗑️ Excluir", use_container_width=True):
        try:
            transacoes.excluir(alvo)
            st.success("Lançamento excluído.")
            st.rerun()
        except Exception as e:
            st.error(str(e))
