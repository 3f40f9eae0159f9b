# pages/Fiado.py
from datetime import date

import pandas as pd
import streamlit as st

from services.app_context import avisar_depois, consumir_avisos, get_context, init_context
from services.data_loader import garantir_dados
from services.layout import aplicar_tema
from services.permissions import require_login
from services.schemas import FORMA_FIADO, FORMAS_PAGAMENTO
from services.status import (
    PARCELA_PAGA,
    VENDA_ATRASADA,
    VENDA_EM_ABERTO,
    VENDA_QUITADA,
    status_badge,
)
from services.ui import render_kpis, section
from services.utils import fmt_brl, fmt_date_br, key_for, nome_cliente

st.set_page_config(page_title="Fiado", page_icon="📒", layout="wide")
st.title("📒 Vendas no fiado")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

for aviso in consumir_avisos(ctx):
    st.warning(aviso)

fiado = ctx["fiado"]
formas = [f for f in FORMAS_PAGAMENTO if f != FORMA_FIADO]

if not ctx["configuracoes"].fiado_habilitado:
    st.info("Venda no fiado está desativada. As vendas já registradas continuam abaixo; ative em ⚙️ Configurações.")

# --------------------------------------------------
# Resumo
# --------------------------------------------------
em_aberto = [v for v in fiado.vendas if v.status == VENDA_EM_ABERTO]
atrasadas = [v for v in fiado.vendas if v.status == VENDA_ATRASADA]
render_kpis([
    ("A receber", fmt_brl(fiado.total_a_receber()), "Parcelas pendentes e atrasadas"),
    ("Em aberto", len(em_aberto)),
    ("Atrasadas", len(atrasadas)),
    ("Quitadas", sum(1 for v in fiado.vendas if v.status == VENDA_QUITADA)),
])

if st.button("🔁 Atualizar atrasados"):
    try:
        n = fiado.atualizar_status_atrasados()
        st.success(f"{n} venda(s) mudaram de status.")
    except Exception as e:
        st.error(f"Falha ao atualizar: {e}")

st.divider()

# --------------------------------------------------
# Filtros
# --------------------------------------------------
f1, f2 = st.columns([2, 3])
filtro_status = f1.selectbox(
    "Status",
    ["todos", VENDA_EM_ABERTO, VENDA_ATRASADA, VENDA_QUITADA],
    format_func=lambda s: "Todos" if s == "todos" else status_badge(s),
)
busca = f2.text_input("Buscar cliente ou produto")

vendas = fiado.vendas
if filtro_status != "todos":
    vendas = [v for v in vendas if v.status == filtro_status]
if busca.strip():
    q = busca.strip().lower()
    vendas = [v for v in vendas if q in nome_cliente(v.cliente).lower() or q in (v.produtos or "").lower()]

section("📋 Vendas", f"{len(vendas)} venda(s)")
if not vendas:
    st.info("Nenhuma venda com esses filtros.")

# --------------------------------------------------
# Vendas e parcelas
# --------------------------------------------------
for v in vendas:
    titulo = (
        f"{nome_cliente(v.cliente)} · {fmt_brl(v.valor_total)} · "
        f"{status_badge(v.status)} · {fmt_date_br(v.data)}"
    )
    with st.expander(titulo):
        st.write(f"**Produtos:** {v.produtos or '—'}")
        k1, k2, k3 = st.columns(3)
        k1.metric("Total", fmt_brl(v.valor_total))
        k2.metric("Pago", fmt_brl(v.total_pago))
        k3.metric("Restante", fmt_brl(v.valor_restante))
        if v.desconto:
            st.caption(f"Subtotal {fmt_brl(v.subtotal)} · desconto {fmt_brl(v.desconto)}")

        parcelas = fiado.parcelas_da_venda(v.id)
        st.dataframe(pd.DataFrame([
            {
                "Parcela": f"{p.numero}/{v.numero_parcelas}",
                "Vencimento": fmt_date_br(p.vencimento),
                "Valor": fmt_brl(p.valor),
                "Status": status_badge(p.status),
                "Pago em": fmt_date_br(p.data_pagamento) if p.data_pagamento else "",
                "Forma": p.forma_pagamento or "",
            }
            for p in parcelas
        ]), use_container_width=True, hide_index=True)

        abertas = [p for p in parcelas if p.status != PARCELA_PAGA]
        if not abertas:
            continue

        st.markdown("**Registrar pagamento**")
        c1, c2, c3, c4 = st.columns([2, 2, 2, 1])
        parcela_sel = c1.selectbox(
            "Parcela",
            abertas,
            format_func=lambda p: f"{p.numero}ª · {fmt_date_br(p.vencimento)} · {fmt_brl(p.valor)}",
            key=key_for("parcela", v.id),
        )
        forma = c2.selectbox("Forma", formas, key=key_for("forma", v.id))
        data_pg = c3.date_input("Data", value=date.today(), key=key_for("data_pg", v.id))
        if c4.button("💰 Pagar", key=key_for("pagar", v.id), use_container_width=True):
            try:
                res = fiado.pagar_parcela(parcela_sel.id, forma, data_pg.isoformat())
                if res.transacao is None:
                    avisar_depois(ctx, f"Parcela {parcela_sel.numero} paga, mas o lançamento no caixa falhou. Verifique os logs.")
                st.rerun()
            except Exception as e:
                st.error(f"Falha ao registrar pagamento: {e}")
