# pages/Relatorios.py
from datetime import date

import pandas as pd
import streamlit as st

from services.app_context import get_context, init_context
from services.data_loader import garantir_dados
from services.layout import altura_grafico, aplicar_tema
from services.permissions import require_login
from services.relatorios import (
    balanco,
    comparativo_periodo,
    despesas_por_categoria,
    distribuicao_categorias,
    exportar_csv,
    filtrar_transacoes,
    formas_pagamento,
    horarios_pico,
    intervalo_periodo,
    preparar_transacoes_df,
    ranking_itens,
    resumo,
    serie_tendencia,
)
from services.schemas import FORMAS_PAGAMENTO
from services.ui import render_kpis, responsive_dataframe, section
from services.utils import fmt_brl, fmt_date_br

st.set_page_config(page_title="Relatórios", page_icon="📊", layout="wide")
st.title("📊 Relatórios")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

ROTULOS_PERIODO = {
    "hoje": "Hoje",
    "semana": "7 dias",
    "mes": "Mês",
    "ano": "Ano",
    "personalizado": "Personalizado",
    "tudo": "Tudo",
}

# --------------------------------------------------
# Filtros
# --------------------------------------------------
st.subheader("🔍 Filtros")
filtro = st.radio("Período", list(ROTULOS_PERIODO), index=2, horizontal=True, format_func=ROTULOS_PERIODO.get)

ini = fim = None
if filtro == "personalizado":
    p1, p2 = st.columns(2)
    ini = p1.date_input("De", value=date.today().replace(day=1))
    fim = p2.date_input("Até", value=date.today())

f1, f2, f3 = st.columns([2, 2, 3])
tipo = f1.selectbox(
    "Tipo",
    ["todos", "servicos", "agendado", "avulso", "vendas"],
    format_func={"todos": "Todos", "servicos": "Serviços", "agendado": "Agendados",
                 "avulso": "Avulsos", "vendas": "Vendas"}.get,
)
forma = f2.selectbox("Pagamento", ["todas"] + list(FORMAS_PAGAMENTO),
                     format_func=lambda f: "Todas" if f == "todas" else f)
busca = f3.text_input("Buscar cliente ou serviço")

intervalo = intervalo_periodo(filtro, inicio=ini, fim=fim)
if filtro == "personalizado" and intervalo is None:
    st.warning("Informe as duas datas.")
    st.stop()

base = preparar_transacoes_df(ctx["transacoes"].itens)
# Sem recorte de data: o comparativo precisa do período anterior
sem_data = filtrar_transacoes(base, None, tipo, forma, busca)
df = filtrar_transacoes(base, intervalo, tipo, forma, busca)

if intervalo:
    st.caption(f"{fmt_date_br(intervalo[0])} → {fmt_date_br(intervalo[1])}")

# --------------------------------------------------
# Resumo
# --------------------------------------------------
section("💰 Resumo")
r = resumo(df, ctx["fiado"].parcelas)
comp = comparativo_periodo(sem_data, intervalo)

ajuda = f"{comp['percentual']:+.1f}% vs. período anterior ({fmt_brl(comp['anterior'])})" if comp else "Sem período anterior"
render_kpis([
    ("Faturamento", fmt_brl(r["total"]), ajuda),
    ("Transações", r["quantidade"]),
    ("Ticket médio", fmt_brl(r["ticket_medio"])),
    ("Serviços / Vendas", f"{r['servicos']} / {r['vendas']}"),
], desktop_cols=4, mobile_cols=2)

if ctx["configuracoes"].fiado_habilitado:
    render_kpis([
        ("Recebido do fiado", fmt_brl(r["fiado_recebido"]), f"{r['fiado_recebimentos']} parcela(s)"),
        ("A receber", fmt_brl(r["a_receber"]), f"{r['parcelas_abertas']} parcela(s) em aberto"),
    ], desktop_cols=2, mobile_cols=1)

if comp:
    delta = comp["diferenca"]
    st.metric("Comparado ao período anterior", fmt_brl(comp["atual"]), delta=fmt_brl(delta))

st.divider()

# --------------------------------------------------
# Gráficos
# --------------------------------------------------
section("📈 Tendência")
serie = serie_tendencia(df, filtro, intervalo)
if serie.empty:
    st.info("Sem série para este período.")
else:
    st.bar_chart(serie.set_index("periodo")["total"], height=altura_grafico())

g1, g2 = st.columns(2)
with g1:
    section("🧩 Por categoria")
    dist = distribuicao_categorias(df)
    if dist.empty:
        st.info("Sem dados.")
    else:
        st.bar_chart(dist, height=altura_grafico())
with g2:
    section("💳 Formas de pagamento")
    fp = formas_pagamento(df)
    if fp.empty:
        st.info("Sem dados.")
    else:
        st.bar_chart(fp, height=altura_grafico())

section("⏰ Horários de pico")
pico = horarios_pico(df)
if not pico:
    st.info("Sem dados.")
for hora, valor in pico:
    st.write(f"**{hora:02d}h** · {fmt_brl(valor)}")

st.divider()

# --------------------------------------------------
# Rankings
# --------------------------------------------------
t1, t2 = st.columns(2)
with t1:
    section("🏆 Serviços mais rentáveis")
    responsive_dataframe(ranking_itens(df, ctx["servicos"].itens).rename(
        columns={"nome": "Serviço", "quantidade": "Qtd.", "receita": "Receita"}), moedas=("Receita",))
with t2:
    section("🏆 Produtos mais vendidos")
    responsive_dataframe(ranking_itens(df, ctx["produtos"].itens, produtos=True).rename(
        columns={"nome": "Produto", "quantidade": "Qtd.", "receita": "Receita"}), moedas=("Receita",))

st.divider()

# --------------------------------------------------
# Balanço
# --------------------------------------------------
section("⚖️ Balanço", "Receitas (incluindo parcelas do fiado pagas) menos despesas")
bal = balanco(ctx["transacoes"].itens, ctx["fiado"].parcelas, ctx["despesas"].itens, intervalo)
render_kpis([
    ("Receitas", fmt_brl(bal["receitas"])),
    ("Despesas", fmt_brl(bal["despesas"])),
    ("Lucro líquido", fmt_brl(bal["lucro_liquido"])),
], desktop_cols=3, mobile_cols=1)

gastos = despesas_por_categoria(ctx["despesas"].itens, intervalo)
if not gastos.empty:
    st.bar_chart(gastos, height=altura_grafico())

with st.expander("Movimentações do balanço"):
    itens = bal["itens"]
    if itens.empty:
        st.info("Nada no período.")
    else:
        view = pd.DataFrame({
            "Data": itens["data"].map(fmt_date_br),
            "Tipo": itens["tipo"].str.capitalize(),
            "Descrição": itens["descricao"],
            "Valor": itens["valor"],
        })
        responsive_dataframe(view, moedas=("Valor",))

# --------------------------------------------------
# Exportação
# --------------------------------------------------
st.download_button(
    "⬇️ Exportar CSV",
    data=exportar_csv(df).encode("utf-8-sig"),
    file_name=f"relatorio_{filtro}_{date.today().isoformat()}.csv",
    mime="text/csv",
    disabled=df.empty,
)
