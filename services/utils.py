# services/utils.py
import re
import streamlit as st
import pandas as pd
from datetime import date, datetime
from typing import Any, Optional


# ---------------------------------------------------------
# Formatação de moeda (BRL) robusta
# ---------------------------------------------------------
def fmt_brl(v: Any) -> str:
    """
    Formata valores em BRL com sinal correto e tolerância a erros.
    - Aceita int, float, str numérica; fallback para 0.0 quando inválido.
    - Negativos exibem prefixo '-'.
    - Usa separadores padrão brasileiro (ponto para milhar, vírgula para decimal).
    """
    try:
        val = float(v)
    except (ValueError, TypeError):
        val = 0.0

    abs_val = abs(val)
    s = f"{abs_val:,.2f}"
    s = s.replace(",", "X").replace(".", ",").replace("X", ".")
    prefix = "-" if val < 0 else ""
    return f"{prefix}R$ {s}"


# ---------------------------------------------------------
# Parser de datas defensivo
# ---------------------------------------------------------
def parse_date_safe(d: Any) -> Optional[date]:
    """
    Converte para `date` aceitando:
      - date
      - datetime (usa .date())
      - string no formato ISO (ou reconhecível pelo pandas)
    Retorna None se inválido.
    """
    if d is None or d == "":
        return None

    try:
        if isinstance(d, datetime):
            return d.date()
        if isinstance(d, date):
            return d
        ts = pd.to_datetime(d, errors="coerce")
        if pd.isna(ts):
            return None
        return ts.date()
    except (ValueError, TypeError):
        return None


def fmt_date_br(d: Any) -> str:
    """
    Formata qualquer data como 'dd/mm/aaaa' ou '—' quando inválida.
    """
    obj = parse_date_safe(d)
    return obj.strftime("%d/%m/%Y") if obj else "—"


# ---------------------------------------------------------
# Rótulo de cliente "Nome|Telefone"
# ---------------------------------------------------------
def somente_digitos(s: Any) -> str:
    return re.sub(r"\D", "", str(s or ""))


def nome_cliente(rotulo: str) -> str:
    """'João Silva|(87) 99155-6444' -> 'João Silva'."""
    rotulo = rotulo or ""
    return rotulo.split("|")[0] if "|" in rotulo else rotulo


def telefone_cliente(rotulo: str) -> Optional[str]:
    rotulo = rotulo or ""
    return rotulo.split("|", 1)[1] if "|" in rotulo else None


def rotulo_cliente(nome: str, whatsapp: Optional[str] = None) -> str:
    """Monta o rótulo gravado em agendamentos/transações."""
    nome = (nome or "").strip()
    return f"{nome}|{whatsapp}" if whatsapp else nome


# ---------------------------------------------------------
# Chaves únicas para widgets Streamlit
# ---------------------------------------------------------
def key_for(*parts: Any) -> str:
    """
    Gera chaves únicas e estáveis para widgets do Streamlit.
    - Concatena partes não nulas com '-'.
    - Converte cada parte para string de forma segura.
    """
    return "-".join(str(p) for p in parts if p is not None)


# ---------------------------------------------------------
# Cache & rerun (qualquer página)
# ---------------------------------------------------------
def clear_cache_and_rerun() -> None:
    """
    Limpa o cache de dados (`st.cache_data`) e reroda a aplicação.
    Útil após gravações no Supabase.
    """
    st.cache_data.clear()
    st.rerun()
