# app.py
import sys
from pathlib import Path
from datetime import date

import streamlit as st

# -------------------------------------------------
# Ajuste de path
# -------------------------------------------------
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# -------------------------------------------------
# Imports internos
# -------------------------------------------------
from services.app_context import (
    AcaoPendente,
    alternar_tema,
    conectar,
    definir_acao_pendente,
    get_context,
    init_context,
)
from services.data_loader import garantir_dados, recarregar
from services.layout import altura_grafico, aplicar_tema
from services.relatorios import estatisticas_do_dia, receita_semanal
from services.status import AGENDAMENTO_ATENDIDO, AGENDAMENTO_CHEGOU, AGENDAMENTO_CONFIRMADO
from services.ui import card, render_kpis, section
from services.utils import fmt_brl, fmt_date_br, key_for, nome_cliente, telefone_cliente

# -------------------------------------------------
# Configuração da página (MOBILE-FIRST)
# -------------------------------------------------
st.set_page_config(
    page_title="Barbearia",
    page_icon="💈",
    layout="centered",
    initial_sidebar_state="collapsed",
)

# -------------------------------------------------
# Contexto / Sessão
# -------------------------------------------------
init_context()
ctx = get_context()
aplicar_tema(ctx)

st.title("💈 Barbearia")
st.caption("Painel do dia: agenda, caixa e fiado")

# -------------------------------------------------
# Sidebar (interface + conexão + acesso)
# -------------------------------------------------
with st.sidebar:
    st.subheader("📱 Interface")
    st.toggle("Modo compacto", key="modo_mobile")
    rotulo_tema = "🌙 Tema escuro" if ctx.get("tema") == "claro" else "☀️ Tema claro"
    if st.button(rotulo_tema, use_container_width=True):
        alternar_tema(ctx)
        st.rerun()

    st.divider()
    st.subheader("🔧 Conexão")
    st.text_input("URL do Supabase", key="supabase_url")
    st.text_input("Chave (anon key)", key="supabase_key", type="password")

    if st.button("Conectar", use_container_width=True):
        try:
            conectar(ctx, st.session_state["supabase_url"], st.session_state["supabase_key"])
            st.cache_data.clear()
            if ctx["db"].ping():
                st.success("✅ Conectado ao Supabase")
                st.rerun()
            else:
                st.warning("Servidor do Supabase não respondeu. Confira a URL.")
        except Exception as e:
            ctx["connected"] = False
            st.error(str(e))

    if ctx.get("db_error"):
        st.error(ctx["db_error"])

    if not ctx.get("connected"):
        st.warning("Conecte ao Supabase para continuar.")
        st.stop()

    st.divider()
    st.subheader("👤 Acesso")
    db = ctx["db"]
    if db.autenticado:
        if st.button("Sair", use_container_width=True):
            try:
                db.sair()
            except Exception as e:
                st.error(f"Falha ao encerrar a sessão: {e}")
            st.rerun()
    else:
        with st.form("login"):
            email = st.text_input("E-mail")
            senha = st.text_input("Senha", type="password")
            entrar = st.form_submit_button("Entrar", use_container_width=True)
        if entrar:
            try:
                db.entrar(email.strip(), senha)
                ctx["dados_carregados"] = False
                st.rerun()
            except Exception as e:
                st.error(f"Não foi possível entrar: {e}")

    if st.button("🔄 Recarregar dados", use_container_width=True):
        recarregar(ctx)

if ctx.get("exigir_login", True) and not ctx["db"].autenticado:
    st.info("Entre com e-mail e senha na barra lateral.")
    st.stop()

# -------------------------------------------------
# Carregamento de dados
# -------------------------------------------------
garantir_dados(ctx)

hoje = date.today()
transacoes = ctx["transacoes"].itens
fiado = ctx["fiado"]
fiado_ativo = ctx["configuracoes"].fiado_habilitado

# -------------------------------------------------
# KPIs do dia
# -------------------------------------------------
section("📊 Hoje", fmt_date_br(hoje))

stats = estatisticas_do_dia(transacoes, hoje)
agenda_hoje = ctx["agendamentos"].do_dia(hoje.isoformat())
pendentes = [a for a in agenda_hoje if a.status != AGENDAMENTO_ATENDIDO]

kpis = [
    ("Receita do dia", fmt_brl(stats["receita"])),
    ("Atendimentos", stats["atendimentos"]),
    ("Ticket médio", fmt_brl(stats["ticket_medio"])),
    ("Na agenda", len(pendentes), "Agendamentos de hoje ainda não atendidos"),
]
if fiado_ativo:
    kpis.append(("A receber (fiado)", fmt_brl(fiado.total_a_receber())))
render_kpis(kpis, desktop_cols=len(kpis), mobile_cols=2)

st.divider()

# -------------------------------------------------
# Receita da semana
# -------------------------------------------------
section("📈 Receita da semana", "Segunda a domingo")
semana = receita_semanal(transacoes, hoje)
st.bar_chart(semana.set_index("dia")["receita"], height=altura_grafico())

st.divider()

# -------------------------------------------------
# Agenda de hoje
# -------------------------------------------------
section("📅 Agenda de hoje")

if not agenda_hoje:
    st.info("Nenhum agendamento para hoje.")

for ag in agenda_hoje:
    linhas = [f"✂️ {ag.servico}", f"🕒 {ag.hora}"]
    fone = telefone_cliente(ag.cliente)
    if fone:
        linhas.append(f"📞 {fone}")
    card(nome_cliente(ag.cliente), linhas, status=ag.status)

    c1, c2 = st.columns(2)
    if ag.status == AGENDAMENTO_CONFIRMADO:
        if c1.button("💈 Chegou", key=key_for("chegou", ag.id), use_container_width=True):
            try:
                ctx["agendamentos"].atualizar_status(ag.id, AGENDAMENTO_CHEGOU)
                st.rerun()
            except Exception as e:
                st.error(f"Falha ao atualizar status: {e}")
    if ag.status != AGENDAMENTO_ATENDIDO:
        if c2.button("✔️ Finalizar", key=key_for("finalizar", ag.id), use_container_width=True):
            definir_acao_pendente(ctx, AcaoPendente(
                tipo="finalizar_agendamento",
                entidade=ag.id,
                redirecionar="app.py",
            ))
            st.switch_page("pages/Agenda.py")

# -------------------------------------------------
# Parcelas vencendo
# -------------------------------------------------
if fiado_ativo:
    st.divider()
    section("🧾 Parcelas dos próximos 7 dias", "Inclui as já atrasadas")
    proximas = fiado.proximas_parcelas(dias=7, hoje=hoje)
    if not proximas:
        st.success("Nenhuma parcela vencendo.")
    for p in proximas:
        venda = fiado.venda_por_id(p.venda_id)
        cliente = nome_cliente(venda.cliente) if venda else "—"
        st.write(f"{fmt_date_br(p.vencimento)} · **{cliente}** · parcela {p.numero} · {fmt_brl(p.valor)} · {p.status}")
