from datetime import date

import pytest

from services.relatorios import (
    CATEGORIA_AGENDADO,
    CATEGORIA_AVULSO,
    CATEGORIA_VENDAS,
    balanco,
    casar_item,
    comparativo_periodo,
    despesas_por_categoria,
    distribuicao_categorias,
    estatisticas_do_dia,
    exportar_csv,
    filtrar_transacoes,
    formas_pagamento,
    horarios_pico,
    intervalo_periodo,
    periodo_anterior,
    preparar_transacoes_df,
    ranking_itens,
    receita_semanal,
    resumo,
    serie_tendencia,
)
from services.schemas import Despesa, ItemCatalogo, Parcela, Transacao

HOJE = date(2024, 5, 15)  # quarta-feira


def _tx(servico="Corte", valor=30.0, data="2024-05-10", **kw):
    kw.setdefault("cliente", "Avulso")
    kw.setdefault("forma_pagamento", "PIX")
    return Transacao(id=kw.pop("id", None), servico=servico, valor=valor, data=data, **kw)


# ---------------------------------------------------------
# Períodos
# ---------------------------------------------------------
@pytest.mark.parametrize("filtro,esperado", [
    ("hoje", (HOJE, HOJE)),
    ("semana", (date(2024, 5, 9), HOJE)),
    ("mes", (date(2024, 5, 1), HOJE)),
    ("ano", (date(2024, 1, 1), HOJE)),
    ("tudo", None),
])
def test_intervalo_periodo(filtro, esperado):
    assert intervalo_periodo(filtro, hoje=HOJE) == esperado


def test_intervalo_personalizado():
    assert intervalo_periodo("personalizado", inicio=date(2024, 5, 20), fim=date(2024, 5, 1)) == (
        date(2024, 5, 1), date(2024, 5, 20))
    assert intervalo_periodo("personalizado", inicio=date(2024, 5, 1)) is None


def test_periodo_anterior_tem_o_mesmo_tamanho():
    assert periodo_anterior((date(2024, 3, 1), date(2024, 3, 31))) == (date(2024, 1, 30), date(2024, 2, 29))
    assert periodo_anterior((HOJE, HOJE)) == (date(2024, 5, 14), date(2024, 5, 14))
    assert periodo_anterior(None) is None


# ---------------------------------------------------------
# Categorias e filtros
# ---------------------------------------------------------
def test_categorias_incluindo_registros_antigos():
    antigos = [
        Transacao.from_row({"id": 1, "clientname": "Ana|(11) 98888-7777", "service": "Corte", "date": "2024-05-10", "value": 30}),
        Transacao.from_row({"id": 2, "clientname": "Ana", "service": "Corte", "date": "2024-05-10", "value": 30}),
        Transacao.from_row({"id": 3, "clientname": "Ana|(11) 98888-7777", "service": "Corte", "date": "2024-05-10",
                            "value": 30, "from_appointment": False}),
        Transacao.from_row({"id": 4, "clientname": "Venda de Produto", "service": "Pomada", "date": "2024-05-10", "value": 25}),
        Transacao.from_row({"id": 5, "clientname": "Ana", "service": "Gel", "date": "2024-05-10", "value": 15, "type": "product"}),
    ]
    df = preparar_transacoes_df(antigos)
    assert list(df["categoria"]) == [
        CATEGORIA_AGENDADO, CATEGORIA_AVULSO, CATEGORIA_AVULSO, CATEGORIA_VENDAS, CATEGORIA_VENDAS,
    ]


def test_preparar_descarta_sem_data_e_aceita_lista_vazia():
    assert preparar_transacoes_df([]).empty
    df = preparar_transacoes_df([_tx(data=""), _tx()])
    assert len(df) == 1


def test_filtrar_por_tipo_forma_e_busca():
    df = preparar_transacoes_df([
        _tx(id=1, cliente="João Silva|(87) 99155-6444", de_agendamento=True, forma_pagamento="PIX, Dinheiro"),
        _tx(id=2, servico="Barba", forma_pagamento="Dinheiro", data="2024-05-12"),
        _tx(id=3, servico="Pomada", tipo="product", forma_pagamento="Crédito", data="2024-04-30"),
    ])

    assert list(filtrar_transacoes(df, forma_pagamento="Dinheiro")["id"]) == [2, 1]
    assert list(filtrar_transacoes(df, forma_pagamento="PIX")["id"]) == [1]
    assert list(filtrar_transacoes(df, tipo="servicos")["id"]) == [2, 1]
    assert list(filtrar_transacoes(df, tipo="vendas")["id"]) == [3]
    assert list(filtrar_transacoes(df, tipo="agendado")["id"]) == [1]
    assert list(filtrar_transacoes(df, busca="joão")["id"]) == [1]
    # o telefone não entra na busca
    assert filtrar_transacoes(df, busca="99155").empty
    assert list(filtrar_transacoes(df, (date(2024, 5, 1), date(2024, 5, 31)))["id"]) == [2, 1]


def test_resumo_separa_recebimentos_do_fiado():
    df = preparar_transacoes_df([
        _tx(valor=30),
        _tx(servico="Pomada", tipo="product", valor=25),
        _tx(servico="Fiado - Ana - Parcela 1/2", tipo="product", valor=50),
    ])
    parcelas = [Parcela(id=1, valor=50, status="Paga"), Parcela(id=2, valor=50, status="Pendente")]

    r = resumo(df, parcelas)

    assert r["total"] == 105.0
    assert (r["servicos"], r["vendas"]) == (1, 2)
    assert r["fiado_recebido"] == 50.0
    assert r["fiado_recebimentos"] == 1
    assert r["ticket_medio"] == 35.0
    assert (r["a_receber"], r["parcelas_abertas"]) == (50.0, 1)


# ---------------------------------------------------------
# Balanço e comparativo
# ---------------------------------------------------------
def test_balanco_conta_cada_parcela_uma_vez():
    transacoes = [
        _tx(id=1, valor=30, data="2024-05-10"),
        _tx(id=2, servico="Fiado - Ana - Parcela 1/2", tipo="product", valor=50, data="2024-05-11"),
    ]
    parcelas = [
        Parcela(id=7, numero=1, valor=50, status="Paga", data_pagamento="2024-05-11"),
        Parcela(id=8, numero=2, valor=50, status="Pendente", vencimento="2024-06-11"),
    ]
    despesas = [
        Despesa(id=3, descricao="Lâminas", valor=20, data="2024-05-12", categoria="Materiais"),
        Despesa(id=4, descricao="Aluguel", valor=900, data="2024-04-05", categoria="Aluguel"),
    ]

    bal = balanco(transacoes, parcelas, despesas, (date(2024, 5, 1), date(2024, 5, 31)))

    assert bal["receitas"] == 80.0
    assert bal["despesas"] == 20.0
    assert bal["lucro_liquido"] == 60.0
    assert list(bal["itens"]["id"]) == ["exp-3", "inst-7", "tx-1"]
    assert bal["itens"].loc[1, "descricao"] == "Parcela de Fiado - 1ª parcela"


def test_balanco_sem_periodo_considera_tudo():
    bal = balanco([], [], [Despesa(id=1, descricao="Luz", valor=100, data="2023-01-01")], None)
    assert bal["lucro_liquido"] == -100.0


def test_comparativo_percentual():
    df = preparar_transacoes_df([_tx(valor=75, data="2024-05-10"), _tx(valor=50, data="2024-05-03")])
    semana = (date(2024, 5, 8), date(2024, 5, 14))

    comp = comparativo_periodo(df, semana)
    assert comp["atual"] == 75.0
    assert comp["anterior"] == 50.0
    assert comp["percentual"] == pytest.approx(50.0)
    assert comp["periodo_anterior"] == (date(2024, 5, 1), date(2024, 5, 7))


def test_comparativo_sem_base_anterior():
    df = preparar_transacoes_df([_tx(valor=75, data="2024-05-10")])
    assert comparativo_periodo(df, (date(2024, 5, 8), date(2024, 5, 14)))["percentual"] == 100.0
    assert comparativo_periodo(df.iloc[0:0], (date(2024, 5, 8), date(2024, 5, 14)))["percentual"] == 0.0
    assert comparativo_periodo(df, None) is None


# ---------------------------------------------------------
# Séries
# ---------------------------------------------------------
def test_tendencia_do_mes_em_semanas_iniciando_no_domingo():
    df = preparar_transacoes_df([_tx(valor=10, data="2024-05-04"), _tx(valor=20, data="2024-05-05")])
    serie = serie_tendencia(df, "mes", (date(2024, 5, 1), date(2024, 5, 20)))
    assert list(serie["periodo"]) == ["Sem 1", "Sem 2", "Sem 3", "Sem 4"]
    assert list(serie["total"]) == [10.0, 20.0, 0.0, 0.0]


def test_tendencia_do_ano_por_mes():
    df = preparar_transacoes_df([_tx(valor=40, data="2024-02-10")])
    serie = serie_tendencia(df, "ano", (date(2024, 1, 1), date(2024, 3, 15)))
    assert list(serie["periodo"]) == ["JAN/24", "FEV/24", "MAR/24"]
    assert list(serie["total"]) == [0.0, 40.0, 0.0]


def test_tendencia_da_semana_e_vazia_para_hoje():
    df = preparar_transacoes_df([_tx()])
    serie = serie_tendencia(df, "semana", intervalo_periodo("semana", hoje=HOJE))
    assert list(serie["periodo"]) == ["Qui", "Sex", "Sáb", "Dom", "Seg", "Ter", "Qua"]
    assert serie.loc[1, "total"] == 30.0
    assert serie_tendencia(df, "hoje", (HOJE, HOJE)).empty


def test_distribuicao_e_formas_de_pagamento():
    df = preparar_transacoes_df([
        _tx(valor=30, de_agendamento=True),
        _tx(servico="Pomada", tipo="product", valor=25, forma_pagamento=""),
    ])
    dist = distribuicao_categorias(df)
    assert dist.to_dict() == {"Vendas": 25.0, "Agendados": 30.0}
    assert formas_pagamento(df).to_dict() == {"PIX": 1, "Não informado": 1}


def test_horarios_de_pico_no_fuso_local():
    df = preparar_transacoes_df([
        _tx(valor=30, criado_em="2024-05-10T13:00:00+00:00"),
        _tx(valor=20, criado_em="2024-05-10T13:30:00+00:00"),
        _tx(valor=40, criado_em="2024-05-10T20:00:00+00:00"),
    ])
    assert horarios_pico(df) == [(10, 50.0), (17, 40.0)]


def test_despesas_por_categoria():
    despesas = [
        Despesa(id=1, descricao="Lâminas", valor=20, data="2024-05-02", categoria="Materiais"),
        Despesa(id=2, descricao="Toalhas", valor=35, data="2024-05-03", categoria="Materiais"),
        Despesa(id=3, descricao="Café", valor=12, data="2024-05-04"),
    ]
    s = despesas_por_categoria(despesas, (date(2024, 5, 1), date(2024, 5, 31)))
    assert s.to_dict() == {"Materiais": 55.0, "Sem categoria": 12.0}
    assert list(s.index) == ["Materiais", "Sem categoria"]


# ---------------------------------------------------------
# Ranking
# ---------------------------------------------------------
CATALOGO = [
    ItemCatalogo(id=1, nome="Corte", preco=30),
    ItemCatalogo(id=2, nome="Corte Degradê", preco=40),
    ItemCatalogo(id=3, nome="Barba", preco=20),
]


def test_casar_item_desempate():
    assert casar_item("corte degradê", CATALOGO).nome == "Corte Degradê"
    assert casar_item("Corte", CATALOGO).nome == "Corte"
    assert casar_item("corte degradê navalhado", CATALOGO).nome == "Corte Degradê"
    # mesmo tamanho: ordem alfabética
    assert casar_item("corte e barba", CATALOGO).nome == "Barba"
    assert casar_item("Luzes", CATALOGO) is None
    assert casar_item("", CATALOGO) is None


def test_ranking_de_servicos():
    df = preparar_transacoes_df([
        _tx(servico="Corte Degradê", valor=45),
        _tx(servico="corte", valor=30),
        _tx(servico="Corte, Barba", valor=50),
        _tx(servico="Sobrancelha, Pigmentação", valor=60),
        _tx(servico="Hidratação", valor=35),
        _tx(servico="Pomada", tipo="product", valor=25),
    ])

    rank = ranking_itens(df, CATALOGO)

    assert list(rank["nome"]) == ["Corte", "Corte Degradê", "Hidratação", "Barba", "Pigmentação"]
    assert list(rank["receita"]) == [60.0, 40.0, 35.0, 20.0, 0.0]
    assert rank.loc[0, "quantidade"] == 2


def test_ranking_de_produtos_ignora_recebimentos_do_fiado():
    df = preparar_transacoes_df([
        _tx(servico="Pomada", tipo="product", valor=25),
        _tx(servico="Fiado - Ana - Parcela 1/2", tipo="product", valor=50),
        _tx(servico="Corte", valor=30),
    ])
    rank = ranking_itens(df, [ItemCatalogo(id=9, nome="Pomada", preco=25)], produtos=True)
    assert rank.to_dict(orient="records") == [{"nome": "Pomada", "quantidade": 1, "receita": 25.0}]


# ---------------------------------------------------------
# Exportação e painel
# ---------------------------------------------------------
def test_exportar_csv():
    df = preparar_transacoes_df([
        _tx(cliente="João|(87) 99155-6444", de_agendamento=True, subtotal=30, desconto=2.5, valor=27.5),
    ])
    linhas = exportar_csv(df).splitlines()
    assert linhas[0] == "Data;Cliente/Produto;Tipo;Serviço;Método de Pagamento;Valor;Desconto"
    assert linhas[1] == "10/05/2024;João;Agendado;Corte;PIX;27,50;2,50"


def test_estatisticas_do_dia():
    stats = estatisticas_do_dia([
        _tx(valor=30, data="2024-05-10"),
        _tx(servico="Pomada", tipo="product", valor=25, data="2024-05-10"),
        _tx(valor=99, data="2024-05-09"),
    ], hoje=date(2024, 5, 10))
    assert stats == {"receita": 55.0, "atendimentos": 1, "ticket_medio": 27.5}


def test_receita_semanal_de_segunda_a_domingo():
    semana = receita_semanal([
        _tx(valor=30, data="2024-05-13"),
        _tx(valor=20, data="2024-05-19"),
        _tx(valor=99, data="2024-05-12"),
    ], hoje=HOJE)
    assert list(semana["dia"]) == ["Seg", "Ter", "Qua", "Qui", "Sex", "Sáb", "Dom"]
    assert list(semana["receita"]) == [30.0, 0.0, 0.0, 0.0, 0.0, 0.0, 20.0]
