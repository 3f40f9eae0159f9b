# services/app_context.py
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import streamlit as st

from supabase_service import SupabaseService
from services.agendamentos import AgendamentosService
from services.catalogo import ProdutosService, ServicosService
from services.clientes import ClientesService
from services.configuracoes import ConfiguracoesService
from services.despesas import CategoriasDespesaService, DespesasService
from services.eventos import EventBus
from services.fiado import FiadoService
from services.transacoes import TransacoesService

logger = logging.getLogger("barbearia")


def montar_servicos(db) -> dict:
    """
    Um barramento e uma instância de cada serviço, todos sobre o mesmo cliente.
    O fiado lança recebimentos via TransacoesService e consulta a flag em
    ConfiguracoesService.
    """
    bus = EventBus()
    transacoes = TransacoesService(db, bus)
    configuracoes = ConfiguracoesService(db)
    return {
        "bus": bus,
        "clientes": ClientesService(db, bus),
        "transacoes": transacoes,
        "agendamentos": AgendamentosService(db, bus),
        "fiado": FiadoService(db, bus, transacoes=transacoes, configuracoes=configuracoes),
        "despesas": DespesasService(db),
        "categorias_despesa": CategoriasDespesaService(db),
        "servicos": ServicosService(db),
        "produtos": ProdutosService(db),
        "configuracoes": configuracoes,
    }


def conectar(ctx, url: str, key: str) -> None:
    """(Re)cria o cliente Supabase e os serviços da sessão."""
    db = SupabaseService(url=url, api_key=key)
    ctx["db"] = db
    ctx.update(montar_servicos(db))
    ctx["connected"] = True
    ctx["dados_carregados"] = False
    ctx.pop("db_error", None)


def init_context():
    """
    Inicializa o estado de sessão do Streamlit e tenta instanciar o SupabaseService
    se houver credenciais disponíveis.

    - Lê valores padrão de st.secrets (supabase_url, supabase_key).
    - Define o tema padrão (claro) e se o login é exigido (exigir_login).
    - Cria cliente e serviços caso ainda não existam e haja credenciais.
    - Marca 'connected' no session_state para guiar o fluxo das páginas.
    """
    ss = st.session_state

    ss["supabase_url"] = ss.get("supabase_url", st.secrets.get("supabase_url", ""))
    ss["supabase_key"] = ss.get("supabase_key", st.secrets.get("supabase_key", ""))
    ss["exigir_login"] = ss.get("exigir_login", bool(st.secrets.get("exigir_login", True)))
    ss["tema"] = ss.get("tema", "claro")

    if "db" not in ss and ss["supabase_url"] and ss["supabase_key"]:
        try:
            conectar(ss, ss["supabase_url"], ss["supabase_key"])
        except ValueError as e:
            ss["db"] = None
            ss["connected"] = False
            ss["db_error"] = str(e)
    else:
        ss["connected"] = ss.get("db") is not None


def get_context():
    """
    Retorna o session_state sem mutações.
    Garanta que init_context() foi chamado no início da execução de cada página/app.
    """
    return st.session_state


def alternar_tema(ctx) -> str:
    ctx["tema"] = "escuro" if ctx.get("tema", "claro") == "claro" else "claro"
    return ctx["tema"]


def avisar_depois(ctx, mensagem: str) -> None:
    """Guarda um aviso para ser exibido depois do próximo st.rerun()."""
    ctx.setdefault("avisos", []).append(mensagem)


def consumir_avisos(ctx) -> list[str]:
    return ctx.pop("avisos", None) or []


# ---------------------------------------------------------
# Ação pendente (edição confirmada em outra tela)
# ---------------------------------------------------------
TIPOS_ACAO = (
    "finalizar_agendamento",
    "editar_agendamento",
    "editar_transacao",
    "novo_agendamento",
)


@dataclass
class AcaoPendente:
    """
    Descreve o que fazer quando o usuário confirmar: um tipo conhecido,
    a entidade alvo (id) e os dados do formulário. Só dados, nunca funções.
    """
    tipo: str
    entidade: Any = None
    dados: dict = field(default_factory=dict)
    redirecionar: Optional[str] = None

    def __post_init__(self):
        if self.tipo not in TIPOS_ACAO:
            raise ValueError(f"Tipo de ação desconhecido: {self.tipo}")


def definir_acao_pendente(ctx, acao: AcaoPendente) -> None:
    ctx["acao_pendente"] = acao


def obter_acao_pendente(ctx) -> Optional[AcaoPendente]:
    return ctx.get("acao_pendente")


def limpar_acao_pendente(ctx) -> None:
    ctx.pop("acao_pendente", None)


def confirmar_acao_pendente(ctx, executores: dict[str, Callable]) -> Any:
    """
    Executa a ação guardada com o executor registrado para o seu tipo,
    chamado como executor(ctx, entidade, **dados). O slot só é limpo
    quando a execução termina sem erro (o usuário pode tentar de novo).
    """
    acao = obter_acao_pendente(ctx)
    if acao is None:
        raise ValueError("Nenhuma ação pendente.")
    executor = executores.get(acao.tipo)
    if executor is None:
        raise ValueError(f"Sem executor para a ação '{acao.tipo}'.")
    resultado = executor(ctx, acao.entidade, **acao.dados)
    limpar_acao_pendente(ctx)
    logger.info(f"Ação '{acao.tipo}' confirmada")
    return resultado


# Executores padrão das telas
def _finalizar_agendamento(ctx, agendamento_id, **dados):
    return ctx["agendamentos"].finalizar(agendamento_id, ctx["transacoes"], **dados)


def _editar_agendamento(ctx, agendamento_id, **dados):
    return ctx["agendamentos"].editar(agendamento_id, **dados)


def _editar_transacao(ctx, transacao_id, **dados):
    return ctx["transacoes"].atualizar(transacao_id, **dados)


def _novo_agendamento(ctx, _entidade, **dados):
    return ctx["agendamentos"].adicionar(**dados)


EXECUTORES = {
    "finalizar_agendamento": _finalizar_agendamento,
    "editar_agendamento": _editar_agendamento,
    "editar_transacao": _editar_transacao,
    "novo_agendamento": _novo_agendamento,
}
