# pages/Despesas.py
from datetime import date

import pandas as pd
import streamlit as st

from services.app_context import get_context, init_context
from services.data_loader import garantir_dados
from services.layout import altura_grafico, aplicar_tema
from services.permissions import require_login
from services.relatorios import despesas_por_categoria, intervalo_periodo
from services.schemas import COR_PADRAO
from services.ui import section
from services.utils import fmt_brl, fmt_date_br, key_for, parse_date_safe

st.set_page_config(page_title="Despesas", page_icon="💸", layout="wide")
st.title("💸 Despesas")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

despesas = ctx["despesas"]
categorias = ctx["categorias_despesa"]
nomes_categorias = [c.nome for c in categorias.itens]

aba_lanc, aba_cat = st.tabs(["Lançamentos", "Categorias"])

# --------------------------------------------------
# Lançamentos
# --------------------------------------------------
with aba_lanc:
    with st.expander("➕ Nova despesa", expanded=True):
        with st.form("nova_despesa", clear_on_submit=True):
            c1, c2 = st.columns([3, 1])
            descricao = c1.text_input("Descrição", placeholder="Ex.: Aluguel, lâminas, conta de luz…")
            valor = c2.number_input("Valor (R$)", min_value=0.01, step=1.0)
            c3, c4 = st.columns(2)
            data_d = c3.date_input("Data", value=date.today())
            categoria = c4.selectbox("Categoria", [None] + nomes_categorias,
                                     format_func=lambda c: "Sem categoria" if c is None else c)
            salvar = st.form_submit_button("Salvar", type="primary")
        if salvar:
            try:
                d = despesas.adicionar(descricao, valor, data_d.isoformat(), categoria)
                st.success(f"Despesa '{d.descricao}' registrada.")
                st.rerun()
            except Exception as e:
                st.error(str(e))

    periodo = st.radio("Período", ["mes", "ano", "tudo"], horizontal=True,
                       format_func=lambda p: {"mes": "Mês atual", "ano": "Ano", "tudo": "Tudo"}[p])
    intervalo = intervalo_periodo(periodo)

    do_periodo = [
        d for d in despesas.itens
        if intervalo is None or (parse_date_safe(d.data) and intervalo[0] <= parse_date_safe(d.data) <= intervalo[1])
    ]

    section("📋 Despesas do período", f"Total: {fmt_brl(sum(d.valor for d in do_periodo))}")

    por_cat = despesas_por_categoria(do_periodo)
    if not por_cat.empty:
        st.bar_chart(por_cat, height=altura_grafico())

    if not do_periodo:
        st.info("Nenhuma despesa no período.")

    for d in do_periodo:
        cor = categorias.cor_da_categoria(d.categoria)
        with st.expander(f"{fmt_date_br(d.data)} · {d.descricao} · {fmt_brl(d.valor)}"):
            st.markdown(
                f"<span style='color:{cor}'>●</span> {d.categoria or 'Sem categoria'}",
                unsafe_allow_html=True,
            )
            with st.form(key_for("editar_despesa", d.id)):
                e1, e2 = st.columns([3, 1])
                nova_desc = e1.text_input("Descrição", value=d.descricao)
                novo_valor = e2.number_input("Valor (R$)", min_value=0.01, step=1.0, value=float(d.valor))
                e3, e4 = st.columns(2)
                nova_data = e3.date_input("Data", value=parse_date_safe(d.data) or date.today())
                opcoes = [""] + nomes_categorias
                atual = d.categoria if d.categoria in nomes_categorias else ""
                nova_cat = e4.selectbox("Categoria", opcoes, index=opcoes.index(atual),
                                        format_func=lambda c: c or "Sem categoria")
                b1, b2 = st.columns(2)
                ok = b1.form_submit_button("Salvar")
                excluir = b2.form_submit_button("🗑️ Excluir")
            if ok:
                try:
                    despesas.atualizar(d.id, nova_desc, novo_valor, nova_data.isoformat(), nova_cat)
                    st.rerun()
                except Exception as e:
                    st.error(str(e))
            if excluir:
                try:
                    despesas.excluir(d.id)
                    st.rerun()
                except Exception as e:
                    st.error(str(e))

# --------------------------------------------------
# Categorias
# --------------------------------------------------
with aba_cat:
    col1, col2, col3 = st.columns([4, 2, 2])
    nome_nova = col1.text_input("Nome", placeholder="Ex.: Produtos, Energia…", key="nova_cat_nome")
    cor_nova = col2.color_picker("Cor", value=COR_PADRAO, key="nova_cat_cor")
    col3.write("")
    if col3.button("Adicionar", type="primary", use_container_width=True):
        try:
            nova = categorias.adicionar(nome_nova, cor_nova)
            st.success(f"Categoria '{nova.nome}' adicionada.")
            st.rerun()
        except Exception as e:
            st.error(str(e))

    st.divider()

    if not categorias.itens:
        st.info("Nenhuma categoria cadastrada.")
        if st.button("Criar categorias padrão"):
            try:
                criadas = categorias.criar_padrao()
                st.success(f"{len(criadas)} categoria(s) criada(s).")
                st.rerun()
            except Exception as e:
                st.error(str(e))
    else:
        df = pd.DataFrame([{"id": c.id, "nome": c.nome, "cor": c.cor} for c in categorias.itens])
        edited = st.data_editor(
            df,
            use_container_width=True,
            hide_index=True,
            num_rows="fixed",
            column_config={
                "id": st.column_config.NumberColumn("ID", disabled=True),
                "nome": st.column_config.TextColumn("Nome"),
                "cor": st.column_config.TextColumn("Cor (hex)"),
            },
            key="cats_editor",
        )
        st.caption("Renomear uma categoria não altera as despesas já lançadas com o nome antigo.")

        b1, b2 = st.columns(2)
        if b1.button("💾 Salvar alterações", disabled=edited.equals(df)):
            try:
                for antes, depois in zip(df.to_dict(orient="records"), edited.to_dict(orient="records")):
                    if antes != depois:
                        categorias.atualizar(int(depois["id"]), nome=depois["nome"], cor=depois["cor"])
                st.success("Categorias atualizadas.")
                st.rerun()
            except Exception as e:
                st.error(str(e))

        alvo = b2.selectbox("Excluir categoria", [None] + categorias.itens,
                            format_func=lambda c: "—" if c is None else c.nome)
        if alvo is not None and b2.button("🗑️ Excluir"):
            try:
                categorias.excluir(alvo.id)
                st.rerun()
            except Exception as e:
                st.error(str(e))
