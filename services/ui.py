import streamlit as st

from services.layout import is_mobile, responsive_columns
from services.status import status_badge
from services.utils import fmt_brl


def section(title: str, caption: str | None = None):
    st.subheader(title)
    if caption:
        st.caption(caption)


def render_kpis(items, desktop_cols=4, mobile_cols=1):
    """items: (rótulo, valor) ou (rótulo, valor, ajuda)."""
    cols = responsive_columns(desktop=desktop_cols, mobile=mobile_cols)
    n = len(cols)
    for i, it in enumerate(items):
        col = cols[i % n]
        if len(it) == 3:
            label, value, help_txt = it
            col.metric(label, value, help=help_txt)
        else:
            label, value = it
            col.metric(label, value)


def card(title: str, lines: list[str], status: str | None = None):
    """Cartão simples (agenda, parcelas, listas no celular)."""
    with st.container(border=True):
        cab = f"**{title}**"
        if status:
            cab += f" · {status_badge(status)}"
        st.markdown(cab)
        for l in lines:
            st.write(l)


def responsive_dataframe(df, moedas: tuple[str, ...] = ()):
    """
    Tabela no desktop → cartões no modo compacto.
    Colunas em `moedas` são exibidas como R$.
    """
    if df is None or df.empty:
        st.info("Nenhum registro.")
        return
    view = df.copy()
    for c in moedas:
        if c in view:
            view[c] = view[c].map(fmt_brl)
    if is_mobile():
        for row in view.to_dict(orient="records"):
            with st.container(border=True):
                for k, v in row.items():
                    st.write(f"**{k}:** {v}")
    else:
        st.dataframe(view, use_container_width=True, hide_index=True)
