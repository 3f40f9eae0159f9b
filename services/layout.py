import streamlit as st

# Ajustes mínimos para o tema escuro (o restante segue o tema do Streamlit)
CSS_ESCURO = """
<style>
.stApp { background-color: #0f172a; color: #e2e8f0; }
[data-testid="stSidebar"] { background-color: #111827; }
[data-testid="stMetricValue"], h1, h2, h3, p, label { color: #e2e8f0 !important; }
div[data-testid="stVerticalBlockBorderWrapper"] { border-color: #334155 !important; }
</style>
"""


def is_mobile() -> bool:
    """
    Modo compacto controlado explicitamente pelo usuário (barra lateral).
    Evita heurísticas frágeis.
    """
    return st.session_state.get("modo_mobile", False)


def responsive_columns(desktop: int, mobile: int = 1):
    cols = mobile if is_mobile() else desktop
    return st.columns(cols)


def altura_grafico() -> int:
    return 240 if is_mobile() else 380


def aplicar_tema(ctx) -> None:
    """Injeta o CSS do tema escuro quando escolhido na sessão."""
    if ctx.get("tema") == "escuro":
        st.markdown(CSS_ESCURO, unsafe_allow_html=True)
