"""
Relatórios e indicadores (somente leitura).

Este módulo centraliza:
- janelas de período (hoje / semana / mês / ano / personalizado / tudo)
- categorização das transações (vendas, agendado, avulso)
- balanço (receitas, despesas, lucro líquido)
- comparação com o período anterior
- séries por dia / semana / mês e rankings de serviços e produtos

Tudo é recalculado a partir das listas em memória; nada aqui grava no banco.
"""

from datetime import date, timedelta
from typing import Optional

import pandas as pd

from services.competencia import competencia_from_date, fim_do_mes, label_competencia, meses_entre
from services.schemas import TIPO_PRODUTO, to_records
from services.status import PARCELA_PAGA
from services.utils import fmt_date_br, nome_cliente, parse_date_safe

FILTROS_PERIODO = ("hoje", "semana", "mes", "ano", "personalizado", "tudo")

CATEGORIA_VENDAS = "vendas"
CATEGORIA_AGENDADO = "agendado"
CATEGORIA_AVULSO = "avulso"

ROTULOS_CATEGORIA = {
    CATEGORIA_VENDAS: "Vendas",
    CATEGORIA_AGENDADO: "Agendados",
    CATEGORIA_AVULSO: "Avulsos",
}

PREFIXO_FIADO = "Fiado -"
FUSO_HORARIO = "America/Sao_Paulo"
VENDA_DE_PRODUTO = "Venda de Produto"
DIAS_SEMANA = ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"]

COLUNAS_TX = [
    "id", "cliente", "servico", "data", "forma_pagamento", "subtotal", "desconto",
    "valor", "tipo", "de_agendamento", "cliente_id", "criado_em",
]

Intervalo = Optional[tuple[date, date]]


# ---------------------------------------------------------
# Janelas de período
# ---------------------------------------------------------
def intervalo_periodo(
    filtro: str,
    hoje: Optional[date] = None,
    inicio: Optional[date] = None,
    fim: Optional[date] = None,
) -> Intervalo:
    """
    Retorna (inicio, fim) inclusivo, ou None para 'tudo'.
    - semana: últimos 7 dias (hoje + 6 anteriores)
    - mes / ano: do dia 1 (ou 1º de janeiro) até hoje
    - personalizado: exige inicio e fim; senão None
    """
    hoje = hoje or date.today()
    if filtro == "hoje":
        return hoje, hoje
    if filtro == "semana":
        return hoje - timedelta(days=6), hoje
    if filtro == "mes":
        return hoje.replace(day=1), hoje
    if filtro == "ano":
        return date(hoje.year, 1, 1), hoje
    if filtro == "personalizado":
        ini, fi = parse_date_safe(inicio), parse_date_safe(fim)
        if ini and fi:
            return (ini, fi) if ini <= fi else (fi, ini)
        return None
    return None


def periodo_anterior(intervalo: Intervalo) -> Intervalo:
    """Janela de mesmo tamanho imediatamente antes da atual."""
    if intervalo is None:
        return None
    inicio, fim = intervalo
    fim_ant = inicio - timedelta(days=1)
    return fim_ant - (fim - inicio), fim_ant


def _no_intervalo(serie: pd.Series, intervalo: Intervalo) -> pd.Series:
    if intervalo is None:
        return pd.Series(True, index=serie.index)
    return serie.between(intervalo[0], intervalo[1])


# ---------------------------------------------------------
# Normalização base
# ---------------------------------------------------------
def categoria_transacao(t: dict) -> str:
    if t.get("tipo") == TIPO_PRODUTO or t.get("cliente") == VENDA_DE_PRODUTO:
        return CATEGORIA_VENDAS
    return CATEGORIA_AGENDADO if t.get("de_agendamento") else CATEGORIA_AVULSO


def preparar_transacoes_df(transacoes: list) -> pd.DataFrame:
    """
    DataFrame das transações com:
    - data_ref (date) e linhas sem data removidas
    - categoria (vendas / agendado / avulso)
    - recebimento_fiado (lançamento automático de parcela paga)
    """
    registros = to_records(transacoes) if transacoes and not isinstance(transacoes[0], dict) else list(transacoes or [])
    if not registros:
        return pd.DataFrame(columns=COLUNAS_TX + ["data_ref", "categoria", "recebimento_fiado"])

    df = pd.DataFrame(registros)
    for col in COLUNAS_TX:
        if col not in df:
            df[col] = None

    df["valor"] = pd.to_numeric(df["valor"], errors="coerce").fillna(0.0)
    df["desconto"] = pd.to_numeric(df["desconto"], errors="coerce").fillna(0.0)
    df["servico"] = df["servico"].fillna("").astype(str)
    df["cliente"] = df["cliente"].fillna("").astype(str)
    df["data_ref"] = pd.to_datetime(df["data"], errors="coerce").dt.date
    df = df.dropna(subset=["data_ref"]).copy()

    df["categoria"] = [categoria_transacao(r) for r in df.to_dict(orient="records")]
    df["recebimento_fiado"] = df["servico"].str.startswith(PREFIXO_FIADO)
    return df.reset_index(drop=True)


def filtrar_transacoes(
    df: pd.DataFrame,
    intervalo: Intervalo = None,
    tipo: str = "todos",
    forma_pagamento: str = "todas",
    busca: str = "",
) -> pd.DataFrame:
    """
    tipo: 'todos' | 'servicos' (agendado + avulso) | 'vendas' | 'agendado' | 'avulso'
    busca: trecho do nome do cliente (sem telefone) ou do serviço
    """
    if df.empty:
        return df

    out = df[_no_intervalo(df["data_ref"], intervalo)]

    if tipo == "servicos":
        out = out[out["categoria"].isin([CATEGORIA_AGENDADO, CATEGORIA_AVULSO])]
    elif tipo != "todos":
        out = out[out["categoria"] == tipo]

    if forma_pagamento != "todas":
        # Pagamento dividido fica gravado como "PIX, Dinheiro"
        usadas = out["forma_pagamento"].fillna("").str.split(",").map(lambda fs: [f.strip() for f in fs])
        out = out[usadas.map(lambda fs: forma_pagamento in fs).astype(bool)]

    q = (busca or "").strip().lower()
    if q:
        nomes = out["cliente"].map(nome_cliente).str.lower()
        achou = nomes.str.contains(q, regex=False) | out["servico"].str.lower().str.contains(q, regex=False)
        out = out[achou.astype(bool)]

    return out.sort_values("data_ref", ascending=False).reset_index(drop=True)


# ---------------------------------------------------------
# Totais
# ---------------------------------------------------------
def resumo(df: pd.DataFrame, parcelas: list) -> dict:
    """Cartões do relatório (período já filtrado em `df`)."""
    total = float(df["valor"].sum()) if not df.empty else 0.0
    qtd = len(df)
    servicos = int(df["categoria"].isin([CATEGORIA_AGENDADO, CATEGORIA_AVULSO]).sum()) if qtd else 0
    vendas = int((df["categoria"] == CATEGORIA_VENDAS).sum()) if qtd else 0

    fiado = df[(df["categoria"] == CATEGORIA_VENDAS) & df["recebimento_fiado"]] if qtd else df
    abertas = [p for p in parcelas if p.status != PARCELA_PAGA]

    return {
        "total": total,
        "quantidade": qtd,
        "servicos": servicos,
        "vendas": vendas,
        "fiado_recebido": float(fiado["valor"].sum()) if not fiado.empty else 0.0,
        "fiado_recebimentos": len(fiado),
        "ticket_medio": total / qtd if qtd else 0.0,
        "a_receber": round(sum(p.valor for p in abertas), 2),
        "parcelas_abertas": len(abertas),
    }


def balanco(transacoes: list, parcelas: list, despesas: list, intervalo: Intervalo) -> dict:
    """
    Receitas = transações (exceto lançamentos de parcela) + parcelas pagas
    pela data de pagamento. Assim cada parcela conta uma vez, mesmo que o
    lançamento automático no caixa não exista.
    """
    itens = []
    for t in transacoes:
        if (t.servico or "").startswith(PREFIXO_FIADO):
            continue
        itens.append({"id": f"tx-{t.id}", "tipo": "receita", "descricao": t.servico,
                      "valor": t.valor, "data": parse_date_safe(t.data)})
    for p in parcelas:
        if p.status == PARCELA_PAGA and p.data_pagamento:
            itens.append({"id": f"inst-{p.id}", "tipo": "receita",
                          "descricao": f"Parcela de Fiado - {p.numero}ª parcela",
                          "valor": p.valor, "data": parse_date_safe(p.data_pagamento)})
    for d in despesas:
        itens.append({"id": f"exp-{d.id}", "tipo": "despesa", "descricao": d.descricao,
                      "valor": d.valor, "data": parse_date_safe(d.data), "categoria": d.categoria})

    df = pd.DataFrame(itens, columns=["id", "tipo", "descricao", "valor", "data", "categoria"])
    df = df.dropna(subset=["data"])
    df = df[_no_intervalo(df["data"], intervalo)] if not df.empty else df

    receitas = round(float(df.loc[df["tipo"] == "receita", "valor"].sum()), 2) if not df.empty else 0.0
    gastos = round(float(df.loc[df["tipo"] == "despesa", "valor"].sum()), 2) if not df.empty else 0.0

    if not df.empty:
        # Mais recentes primeiro; no mesmo dia, despesas antes
        df = df.assign(_ordem_tipo=(df["tipo"] == "receita").astype(int))
        df = df.sort_values(["data", "_ordem_tipo", "id"], ascending=[False, True, False]).drop(columns="_ordem_tipo")

    return {
        "receitas": receitas,
        "despesas": gastos,
        "lucro_liquido": round(receitas - gastos, 2),
        "itens": df.reset_index(drop=True),
    }


def distribuicao_categorias(df: pd.DataFrame) -> pd.Series:
    """Soma por categoria (Vendas / Agendados / Avulsos), só as positivas."""
    if df.empty:
        return pd.Series(dtype=float)
    s = df.groupby("categoria")["valor"].sum()
    s = s.reindex(list(ROTULOS_CATEGORIA)).fillna(0.0)
    s.index = [ROTULOS_CATEGORIA[c] for c in s.index]
    return s[s > 0]


def comparativo_periodo(df: pd.DataFrame, intervalo: Intervalo) -> Optional[dict]:
    """
    Total do período vs. janela anterior de mesmo tamanho.
    percentual = 100 quando o anterior é zero e o atual positivo.
    """
    anterior = periodo_anterior(intervalo)
    if intervalo is None or anterior is None:
        return None
    if df.empty:
        atual_total = anterior_total = 0.0
    else:
        atual_total = float(df.loc[_no_intervalo(df["data_ref"], intervalo), "valor"].sum())
        anterior_total = float(df.loc[_no_intervalo(df["data_ref"], anterior), "valor"].sum())

    diferenca = atual_total - anterior_total
    if anterior_total > 0:
        percentual = diferenca / anterior_total * 100
    else:
        percentual = 100.0 if atual_total > 0 else 0.0
    return {
        "atual": atual_total,
        "anterior": anterior_total,
        "diferenca": diferenca,
        "percentual": percentual,
        "periodo_anterior": anterior,
    }


# ---------------------------------------------------------
# Séries para gráficos
# ---------------------------------------------------------
def serie_tendencia(df: pd.DataFrame, filtro: str, intervalo: Intervalo) -> pd.DataFrame:
    """
    Colunas (periodo, total):
    - semana: um ponto por dia ('Seg', 'Ter', ...)
    - mes: semanas começando no domingo ('Sem 1', 'Sem 2', ...)
    - ano: um ponto por mês até o atual ('JAN/26', ...)
    - personalizado: um ponto por dia
    """
    vazio = pd.DataFrame(columns=["periodo", "total"])
    if intervalo is None or filtro == "hoje":
        return vazio
    inicio, fim = intervalo

    def soma(ini: date, fi: date) -> float:
        if df.empty:
            return 0.0
        return float(df.loc[df["data_ref"].between(ini, fi), "valor"].sum())

    linhas = []
    if filtro == "mes":
        semana_ini = inicio - timedelta(days=(inicio.weekday() + 1) % 7)
        n = 1
        while semana_ini <= fim:
            semana_fim = min(semana_ini + timedelta(days=6), fim)
            linhas.append((f"Sem {n}", soma(max(semana_ini, inicio), semana_fim)))
            semana_ini += timedelta(days=7)
            n += 1
    elif filtro == "ano":
        for ini in meses_entre(inicio, fim):
            linhas.append((label_competencia(competencia_from_date(ini)), soma(ini, min(fim_do_mes(ini), fim))))
    else:
        d = inicio
        while d <= fim:
            rotulo = DIAS_SEMANA[d.weekday()] if filtro == "semana" else fmt_date_br(d)[:5]
            linhas.append((rotulo, soma(d, d)))
            d += timedelta(days=1)

    return pd.DataFrame(linhas, columns=["periodo", "total"])


def formas_pagamento(df: pd.DataFrame) -> pd.Series:
    """Quantidade de transações por forma de pagamento."""
    if df.empty:
        return pd.Series(dtype=int)
    formas = df["forma_pagamento"].fillna("").astype(str).str.strip().replace("", "Não informado")
    return formas.value_counts()


def horarios_pico(df: pd.DataFrame, n: int = 3) -> list[tuple[int, float]]:
    """Horas (de created_at) com maior faturamento."""
    if df.empty:
        return []
    horas = pd.to_datetime(df["criado_em"], errors="coerce", utc=True, format="ISO8601").dt.tz_convert(FUSO_HORARIO)
    base = pd.DataFrame({"hora": horas.dt.hour, "valor": df["valor"]}).dropna(subset=["hora"])
    if base.empty:
        return []
    s = base.groupby("hora")["valor"].sum().sort_values(ascending=False).head(n)
    return [(int(h), float(v)) for h, v in s.items()]


def despesas_por_categoria(despesas: list, intervalo: Intervalo = None) -> pd.Series:
    """Categoria -> soma das despesas do período (maior primeiro)."""
    if not despesas:
        return pd.Series(dtype=float)
    df = pd.DataFrame(to_records(despesas))
    df["data_ref"] = pd.to_datetime(df["data"], errors="coerce").dt.date
    df = df.dropna(subset=["data_ref"]).copy()
    df = df[_no_intervalo(df["data_ref"], intervalo)].copy()
    if df.empty:
        return pd.Series(dtype=float)
    df["Categoria"] = df["categoria"].fillna("Sem categoria")
    return df.groupby("Categoria")["valor"].sum().sort_values(ascending=False)


# ---------------------------------------------------------
# Ranking de serviços / produtos
# ---------------------------------------------------------
def casar_item(rotulo: str, catalogo: list):
    """
    Item do catálogo que corresponde ao rótulo digitado (sem diferenciar
    maiúsculas): igualdade, ou um contido no outro. Desempate: igualdade
    exata, depois o nome mais longo, depois ordem alfabética.
    """
    alvo = (rotulo or "").strip().lower()
    if not alvo:
        return None
    candidatos = []
    for item in catalogo:
        nome = (item.nome or "").strip().lower()
        if not nome:
            continue
        if nome == alvo or nome in alvo or alvo in nome:
            candidatos.append(item)
    if not candidatos:
        return None
    candidatos.sort(key=lambda i: (
        i.nome.strip().lower() != alvo,
        -len(i.nome.strip()),
        i.nome.strip().lower(),
    ))
    return candidatos[0]


def ranking_itens(df: pd.DataFrame, catalogo: list, produtos: bool = False, n: int = 5) -> pd.DataFrame:
    """
    Top N por faturamento. Rótulos com vírgula contam cada item; itens do
    catálogo são agrupados pelo nome cadastrado e usam o preço do catálogo,
    item único fora do catálogo usa o
    valor da transação, e itens múltiplos fora do catálogo contam zero.
    """
    colunas = ["nome", "quantidade", "receita"]
    if df.empty:
        return pd.DataFrame(columns=colunas)

    if produtos:
        base = df[(df["categoria"] == CATEGORIA_VENDAS) & ~df["recebimento_fiado"]]
    else:
        base = df[(df["categoria"] != CATEGORIA_VENDAS) & (df["servico"] != "") & (df["servico"] != VENDA_DE_PRODUTO)]

    contagem: dict[str, dict] = {}
    for r in base.to_dict(orient="records"):
        rotulo = r["servico"] or "Sem nome"
        itens = [i.strip() for i in rotulo.split(",") if i.strip()] or [rotulo]
        for item in itens:
            achado = casar_item(item, catalogo)
            preco = achado.preco if achado else (r["valor"] if len(itens) == 1 else 0.0)
            c = contagem.setdefault(achado.nome if achado else item, {"quantidade": 0, "receita": 0.0})
            c["quantidade"] += 1
            c["receita"] += float(preco)

    if not contagem:
        return pd.DataFrame(columns=colunas)
    out = pd.DataFrame([{"nome": k, **v} for k, v in contagem.items()], columns=colunas)
    return out.sort_values(["receita", "nome"], ascending=[False, True]).head(n).reset_index(drop=True)


# ---------------------------------------------------------
# Exportação
# ---------------------------------------------------------
def exportar_csv(df: pd.DataFrame) -> str:
    """CSV separado por ';' com decimais em vírgula (abre direto no Excel pt-BR)."""
    cab = ["Data", "Cliente/Produto", "Tipo", "Serviço", "Método de Pagamento", "Valor", "Desconto"]
    rotulo_tipo = {CATEGORIA_VENDAS: "Venda", CATEGORIA_AGENDADO: "Agendado", CATEGORIA_AVULSO: "Avulso"}
    linhas = [";".join(cab)]
    for r in df.to_dict(orient="records"):
        linhas.append(";".join([
            fmt_date_br(r["data_ref"]),
            nome_cliente(r["cliente"]),
            rotulo_tipo.get(r["categoria"], "-"),
            r["servico"] or "-",
            r.get("forma_pagamento") or "-",
            f"{float(r['valor']):.2f}".replace(".", ","),
            f"{float(r['desconto'] or 0):.2f}".replace(".", ","),
        ]))
    return "\n".join(linhas)


# ---------------------------------------------------------
# Painel inicial
# ---------------------------------------------------------
def estatisticas_do_dia(transacoes: list, hoje: Optional[date] = None) -> dict:
    hoje = hoje or date.today()
    df = preparar_transacoes_df(transacoes)
    dia = df[df["data_ref"] == hoje] if not df.empty else df
    receita = float(dia["valor"].sum()) if not dia.empty else 0.0
    atendimentos = int(dia["categoria"].isin([CATEGORIA_AGENDADO, CATEGORIA_AVULSO]).sum()) if not dia.empty else 0
    return {
        "receita": receita,
        "atendimentos": atendimentos,
        "ticket_medio": receita / len(dia) if len(dia) else 0.0,
    }


def receita_semanal(transacoes: list, hoje: Optional[date] = None) -> pd.DataFrame:
    """Receita de cada dia da semana corrente (segunda a domingo)."""
    hoje = hoje or date.today()
    segunda = hoje - timedelta(days=hoje.weekday())
    df = preparar_transacoes_df(transacoes)
    linhas = []
    for i, rotulo in enumerate(DIAS_SEMANA):
        d = segunda + timedelta(days=i)
        total = float(df.loc[df["data_ref"] == d, "valor"].sum()) if not df.empty else 0.0
        linhas.append((rotulo, total))
    return pd.DataFrame(linhas, columns=["dia", "receita"])
