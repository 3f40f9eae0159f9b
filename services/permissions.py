import streamlit as st


def require_login(ctx):
    """
    Interrompe a página quando não há conexão com o Supabase ou, se o login
    for exigido (padrão), quando o administrador ainda não entrou.
    """
    if not ctx.get("connected"):
        st.warning("Conecte ao Supabase na página principal.")
        st.stop()

    db = ctx.get("db")
    if ctx.get("exigir_login", True) and not getattr(db, "autenticado", False):
        st.error("Acesso restrito. Entre com e-mail e senha na página principal.")
        st.stop()
