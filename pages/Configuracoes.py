# pages/Configuracoes.py
import pandas as pd
import streamlit as st

from services.app_context import alternar_tema, get_context, init_context
from services.data_loader import garantir_dados
from services.layout import aplicar_tema
from services.permissions import require_login
from services.utils import fmt_brl

st.set_page_config(page_title="Configurações", page_icon="⚙️", layout="wide")
st.title("⚙️ Configurações")

# --------------------------------------------------
# Contexto
# --------------------------------------------------
init_context()
ctx = get_context()
require_login(ctx)
aplicar_tema(ctx)
garantir_dados(ctx)

configuracoes = ctx["configuracoes"]

# --------------------------------------------------
# Sistema
# --------------------------------------------------
st.subheader("🔧 Sistema")
c1, c2 = st.columns(2)

habilitado = c1.toggle("Permitir venda no fiado", value=configuracoes.fiado_habilitado)
if habilitado != configuracoes.fiado_habilitado:
    try:
        configuracoes.definir_fiado_habilitado(habilitado)
        st.rerun()
    except Exception as e:
        st.error(f"Falha ao salvar configuração: {e}")

tema = ctx.get("tema", "claro")
if c2.button("🌙 Usar tema escuro" if tema == "claro" else "☀️ Usar tema claro"):
    alternar_tema(ctx)
    st.rerun()

st.divider()


# --------------------------------------------------
# Catálogo (serviços e produtos)
# --------------------------------------------------
def _catalogo(servico, rotulo: str, chave: str):
    col1, col2, col3 = st.columns([4, 2, 2])
    nome = col1.text_input("Nome", key=f"{chave}_novo_nome")
    preco = col2.number_input("Preço (R$)", min_value=0.0, step=1.0, key=f"{chave}_novo_preco")
    col3.write("")
    if col3.button("Adicionar", key=f"{chave}_add", type="primary", use_container_width=True):
        try:
            item = servico.adicionar(nome, preco)
            st.success(f"{rotulo} '{item.nome}' adicionado ({fmt_brl(item.preco)}).")
            st.rerun()
        except Exception as e:
            st.error(str(e))

    if not servico.itens:
        st.info("Nada cadastrado.")
        return

    df = pd.DataFrame([{"id": i.id, "nome": i.nome, "preco": i.preco} for i in servico.itens])
    edited = st.data_editor(
        df,
        use_container_width=True,
        hide_index=True,
        num_rows="fixed",
        column_config={
            "id": st.column_config.NumberColumn("ID", disabled=True),
            "nome": st.column_config.TextColumn("Nome"),
            "preco": st.column_config.NumberColumn("Preço (R$)", min_value=0.0, format="%.2f"),
        },
        key=f"{chave}_editor",
    )

    b1, b2 = st.columns(2)
    if b1.button("💾 Salvar alterações", key=f"{chave}_salvar", disabled=edited.equals(df)):
        try:
            for antes, depois in zip(df.to_dict(orient="records"), edited.to_dict(orient="records")):
                if antes != depois:
                    servico.atualizar(int(depois["id"]), nome=depois["nome"], preco=depois["preco"])
            st.success("Alterações salvas.")
            st.rerun()
        except Exception as e:
            st.error(str(e))

    alvo = b2.selectbox(f"Excluir {rotulo.lower()}", [None] + servico.itens,
                        format_func=lambda i: "—" if i is None else i.nome, key=f"{chave}_alvo")
    if alvo is not None and b2.button("🗑️ Excluir", key=f"{chave}_excluir"):
        try:
            servico.excluir(alvo.id)
            st.rerun()
        except Exception as e:
            st.error(str(e))


aba_serv, aba_prod = st.tabs(["✂️ Serviços", "🧴 Produtos"])
with aba_serv:
    _catalogo(ctx["servicos"], "Serviço", "serv")
with aba_prod:
    _catalogo(ctx["produtos"], "Produto", "prod")
