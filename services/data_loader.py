# services/data_loader.py
import logging

import streamlit as st

from services.utils import clear_cache_and_rerun

logger = logging.getLogger("barbearia")

# Chaves de session_state com os serviços (ordem de carga)
SERVICOS = (
    "clientes",
    "transacoes",
    "agendamentos",
    "fiado",
    "despesas",
    "categorias_despesa",
    "servicos",
    "produtos",
)


def carregar_dados(ctx, forcar: bool = False) -> None:
    """
    Busca todas as listas uma vez por sessão (ou de novo com forcar=True).
    Depois de listar o fiado, marca parcelas vencidas como Atrasadas.
    """
    if ctx.get("dados_carregados") and not forcar:
        return
    ctx["configuracoes"].carregar()
    for nome in SERVICOS:
        ctx[nome].carregar()
    try:
        ctx["fiado"].atualizar_status_atrasados()
    except Exception as e:
        logger.warning(f"Não foi possível atualizar parcelas atrasadas: {e}")
    ctx["dados_carregados"] = True


def garantir_dados(ctx) -> None:
    """Versão para páginas: mostra o erro e interrompe em vez de propagar."""
    try:
        with st.spinner("Carregando dados..."):
            carregar_dados(ctx)
    except Exception as e:
        st.error(f"Falha ao carregar dados do Supabase: {e}")
        st.stop()


def recarregar(ctx) -> None:
    """Força nova leitura na próxima execução (após gravações)."""
    ctx["dados_carregados"] = False
    clear_cache_and_rerun()
