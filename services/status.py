# services/status.py
from datetime import date
from typing import Iterable, Optional

from services.utils import parse_date_safe

# ---------------------------------------------------------
# Valores gravados no banco (colunas status)
# ---------------------------------------------------------
PARCELA_PENDENTE = "Pendente"
PARCELA_PAGA = "Paga"
PARCELA_ATRASADA = "Atrasada"

VENDA_EM_ABERTO = "Em Aberto"
VENDA_QUITADA = "Quitado"
VENDA_ATRASADA = "Atrasado"

AGENDAMENTO_CONFIRMADO = "Confirmado"
AGENDAMENTO_CHEGOU = "Chegou"
AGENDAMENTO_ATENDIDO = "Atendido"

# Ordem linear da visita
FLUXO_AGENDAMENTO = (
    AGENDAMENTO_CONFIRMADO,
    AGENDAMENTO_CHEGOU,
    AGENDAMENTO_ATENDIDO,
)


class TransicaoInvalida(ValueError):
    """Mudança de status que não avança no fluxo."""


def _status(x) -> str:
    if isinstance(x, dict):
        return str(x.get("status", "")).strip()
    return str(getattr(x, "status", x) or "").strip()


# ---------------------------------------------------------
# Parcelas e vendas no fiado
# ---------------------------------------------------------
def parcela_vencida(parcela, hoje: Optional[date] = None) -> bool:
    """Pendente com vencimento anterior a hoje."""
    hoje = hoje or date.today()
    if _status(parcela) != PARCELA_PENDENTE:
        return False
    venc = parcela.get("vencimento") if isinstance(parcela, dict) else getattr(parcela, "vencimento", None)
    d = parse_date_safe(venc)
    return d is not None and d < hoje


def status_venda(parcelas: Iterable) -> str:
    """
    Classifica a venda pelas parcelas:
    - todas pagas      -> Quitado
    - alguma atrasada  -> Atrasado
    - senão            -> Em Aberto
    """
    sts = [_status(p) for p in parcelas]
    if sts and all(s == PARCELA_PAGA for s in sts):
        return VENDA_QUITADA
    if any(s == PARCELA_ATRASADA for s in sts):
        return VENDA_ATRASADA
    return VENDA_EM_ABERTO


# ---------------------------------------------------------
# Agendamentos
# ---------------------------------------------------------
def validar_transicao_agendamento(atual: str, novo: str) -> None:
    """
    Só permite avançar (Confirmado -> Chegou -> Atendido). Pular uma etapa
    para frente é permitido; repetir ou voltar levanta TransicaoInvalida.
    """
    if novo not in FLUXO_AGENDAMENTO:
        raise TransicaoInvalida(f"Status desconhecido: {novo}")
    if atual not in FLUXO_AGENDAMENTO:
        return
    if FLUXO_AGENDAMENTO.index(novo) <= FLUXO_AGENDAMENTO.index(atual):
        raise TransicaoInvalida(f"Não é possível mudar de '{atual}' para '{novo}'.")


def proximo_status_agendamento(atual: str) -> Optional[str]:
    if atual not in FLUXO_AGENDAMENTO:
        return AGENDAMENTO_CONFIRMADO
    i = FLUXO_AGENDAMENTO.index(atual)
    return FLUXO_AGENDAMENTO[i + 1] if i + 1 < len(FLUXO_AGENDAMENTO) else None


# ---------------------------------------------------------
# Badges mantidos apenas como representação visual
# ---------------------------------------------------------
def status_badge(sts: str) -> str:
    """Representação visual do status (somente UI)."""
    return {
        PARCELA_PENDENTE: "⏳ Pendente",
        PARCELA_PAGA: "✅ Paga",
        PARCELA_ATRASADA: "🔴 Atrasada",
        VENDA_EM_ABERTO: "📝 Em aberto",
        VENDA_QUITADA: "✅ Quitado",
        VENDA_ATRASADA: "🔴 Atrasado",
        AGENDAMENTO_CONFIRMADO: "📅 Confirmado",
        AGENDAMENTO_CHEGOU: "💈 Chegou",
        AGENDAMENTO_ATENDIDO: "✔️ Atendido",
    }.get(sts, sts)
