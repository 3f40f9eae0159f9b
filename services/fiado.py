# services/fiado.py
"""
Vendas no fiado (crédito parcelado) e suas parcelas.

Regras mantidas a cada operação:
- total_pago + valor_restante == valor_total da venda
- venda Quitado  <=> todas as parcelas Paga
- parcelas numeradas 1..N, soma dos valores == valor_total

Parcela: Pendente -> Paga (final) | Pendente -> Atrasada -> Paga (final)
Venda:   Em Aberto <-> Atrasado (reconciliação) ; qualquer -> Quitado (final)
"""
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from services.eventos import CLIENTE_ATUALIZADO
from services.finance_core import dividir_parcelas, parse_valor, to_decimal, vencimentos
from services.schemas import Parcela, Transacao, VendaFiado, TIPO_PRODUTO
from services.status import (
    PARCELA_ATRASADA,
    PARCELA_PAGA,
    PARCELA_PENDENTE,
    VENDA_EM_ABERTO,
    VENDA_QUITADA,
    status_venda,
)
from services.utils import nome_cliente, parse_date_safe

logger = logging.getLogger("barbearia")

TABELA_VENDAS = "credit_sales"
TABELA_PARCELAS = "installments"


class ParcelaJaPaga(ValueError):
    """Tentativa de pagar de novo uma parcela já quitada."""


@dataclass
class PagamentoParcela:
    parcela: Parcela
    venda: VendaFiado
    # None quando o lançamento no caixa falhou (o pagamento continua registrado)
    transacao: Optional[Transacao] = None


def descricao_pagamento(venda: VendaFiado, parcela: Parcela) -> str:
    """Texto gravado em transactions.service: 'Fiado - Cliente - Parcela 1/3'."""
    return f"Fiado - {nome_cliente(venda.cliente)} - Parcela {parcela.numero}/{venda.numero_parcelas}"


class FiadoService:
    def __init__(self, db, bus=None, transacoes=None, configuracoes=None):
        """
        `transacoes`: TransacoesService usado para lançar os pagamentos no caixa.
        `configuracoes`: ConfiguracoesService; quando informado, criar_venda
        respeita a flag de fiado habilitado.
        """
        self.db = db
        self.bus = bus
        self.transacoes = transacoes
        self.configuracoes = configuracoes
        self.vendas: list[VendaFiado] = []
        self.parcelas: list[Parcela] = []
        if bus is not None:
            bus.subscribe(CLIENTE_ATUALIZADO, self.carregar)

    # ---------------------------------------------------------
    # Leitura
    # ---------------------------------------------------------
    def carregar(self, **_) -> list[VendaFiado]:
        vendas = self.db.select(TABELA_VENDAS, ordem=["-created_at"])
        parcelas = self.db.select(TABELA_PARCELAS, ordem=["duedate"])
        self.vendas = [VendaFiado.from_row(r) for r in vendas]
        self.parcelas = [Parcela.from_row(r) for r in parcelas]
        return self.vendas

    def venda_por_id(self, venda_id) -> Optional[VendaFiado]:
        return next((v for v in self.vendas if v.id == venda_id), None)

    def parcelas_da_venda(self, venda_id) -> list[Parcela]:
        return sorted((p for p in self.parcelas if p.venda_id == venda_id), key=lambda p: p.numero)

    def vendas_do_cliente(self, cliente_id=None, nome: Optional[str] = None) -> list[VendaFiado]:
        out = []
        for v in self.vendas:
            if cliente_id is not None and v.cliente_id == cliente_id:
                out.append(v)
            elif nome and nome_cliente(v.cliente).strip().lower() == nome.strip().lower():
                out.append(v)
        return out

    def total_a_receber(self) -> float:
        """Soma das parcelas ainda não pagas (pendentes + atrasadas)."""
        total = sum((to_decimal(p.valor) for p in self.parcelas if p.status != PARCELA_PAGA), Decimal("0.00"))
        return float(total)

    def proximas_parcelas(self, dias: int = 7, hoje: Optional[date] = None) -> list[Parcela]:
        hoje = hoje or date.today()
        limite = hoje + timedelta(days=dias)
        out = []
        for p in self.parcelas:
            if p.status == PARCELA_PAGA:
                continue
            d = parse_date_safe(p.vencimento)
            if d and d <= limite:
                out.append(p)
        return sorted(out, key=lambda p: p.vencimento)

    # ---------------------------------------------------------
    # Criação
    # ---------------------------------------------------------
    def criar_venda(
        self,
        cliente: str,
        produtos: str,
        valor_total,
        numero_parcelas: int,
        primeiro_vencimento,
        subtotal=None,
        desconto=0.0,
        data: Optional[str] = None,
        cliente_id: Optional[int] = None,
    ) -> tuple[VendaFiado, list[Parcela]]:
        """
        Cria a venda e as N parcelas mensais. Se a gravação das parcelas
        falhar, a venda recém-criada é apagada antes de propagar o erro.
        """
        if self.configuracoes is not None and not self.configuracoes.config.fiado_habilitado:
            raise ValueError("Venda no fiado está desativada nas configurações.")
        numero_parcelas = int(numero_parcelas)
        if numero_parcelas < 1:
            raise ValueError("Número de parcelas deve ser >= 1.")
        valor_total = parse_valor(valor_total)
        if valor_total <= 0:
            raise ValueError("Valor total deve ser maior que zero.")
        primeiro = parse_date_safe(primeiro_vencimento)
        if primeiro is None:
            raise ValueError("Informe a data do primeiro vencimento.")
        if not (cliente or "").strip():
            raise ValueError("Informe o cliente.")
        valores = dividir_parcelas(valor_total, numero_parcelas)

        venda = VendaFiado(
            cliente=cliente.strip(),
            produtos=(produtos or "").strip(),
            valor_total=valor_total,
            subtotal=parse_valor(subtotal if subtotal is not None else valor_total),
            desconto=parse_valor(desconto or 0),
            numero_parcelas=numero_parcelas,
            primeiro_vencimento=primeiro.isoformat(),
            status=VENDA_EM_ABERTO,
            total_pago=0.0,
            valor_restante=valor_total,
            data=data or date.today().isoformat(),
            cliente_id=cliente_id,
        )
        linhas = self.db.insert(TABELA_VENDAS, venda.to_row())
        if not linhas:
            raise RuntimeError("Falha ao criar venda no fiado.")
        venda = VendaFiado.from_row(linhas[0])

        datas = vencimentos(primeiro, numero_parcelas)
        novas = [
            Parcela(
                venda_id=venda.id,
                numero=i + 1,
                valor=valores[i],
                vencimento=datas[i].isoformat(),
                status=PARCELA_PENDENTE,
            ).to_row()
            for i in range(numero_parcelas)
        ]
        try:
            criadas = self.db.insert(TABELA_PARCELAS, novas)
            if not criadas:
                raise RuntimeError(f"Nenhuma parcela gravada para a venda {venda.id}.")
        except Exception:
            logger.error(f"Erro ao criar parcelas da venda {venda.id}; desfazendo a venda")
            self._desfazer_venda(venda.id)
            raise

        parcelas = sorted((Parcela.from_row(r) for r in criadas), key=lambda p: p.numero)
        self.vendas.insert(0, venda)
        self.parcelas.extend(parcelas)
        logger.info(f"Venda no fiado {venda.id} criada: {numero_parcelas}x, total {valor_total:.2f}")
        return venda, parcelas

    def _desfazer_venda(self, venda_id: int) -> None:
        try:
            self.db.delete(TABELA_VENDAS, {"id": venda_id})
        except Exception:
            logger.exception(f"Venda {venda_id} ficou sem parcelas e não pôde ser apagada; remova manualmente")

    # ---------------------------------------------------------
    # Pagamento
    # ---------------------------------------------------------
    def pagar_parcela(
        self,
        parcela_id: int,
        forma_pagamento: str,
        data_pagamento: Optional[str] = None,
    ) -> PagamentoParcela:
        """
        1. marca a parcela como Paga (data e forma de pagamento)
        2. soma em total_pago e abate de valor_restante (mínimo 0)
        3. reclassifica a venda: Quitado quando todas as parcelas estão pagas,
           senão Em Aberto (atualizar_status_atrasados volta a marcar atrasos)
        4. lança o recebimento em transactions (type=product)

        O passo 4 não desfaz os anteriores: se falhar, o erro vai para o log
        e `transacao` volta None.
        """
        if not (forma_pagamento or "").strip():
            raise ValueError("Informe a forma de pagamento.")
        data_pagamento = (parse_date_safe(data_pagamento) or date.today()).isoformat()

        row = self.db.single(TABELA_PARCELAS, {"id": parcela_id})
        if row is None:
            raise ValueError(f"Parcela {parcela_id} não encontrada.")
        if row.get("status") == PARCELA_PAGA:
            raise ParcelaJaPaga(f"Parcela {parcela_id} já está paga.")

        # 1
        linhas = self.db.update(
            TABELA_PARCELAS,
            {"status": PARCELA_PAGA, "paiddate": data_pagamento, "paymentmethod": forma_pagamento},
            {"id": parcela_id},
        )
        if not linhas:
            raise RuntimeError(f"Parcela {parcela_id} não foi atualizada.")
        parcela = Parcela.from_row(linhas[0])
        self._substituir_parcela(parcela)

        venda_row = self.db.single(TABELA_VENDAS, {"id": parcela.venda_id})
        if venda_row is None:
            raise ValueError(f"Venda {parcela.venda_id} da parcela {parcela_id} não encontrada.")
        venda = VendaFiado.from_row(venda_row)

        # 2
        valor = to_decimal(parcela.valor)
        novo_total_pago = to_decimal(venda.total_pago) + valor
        novo_restante = max(Decimal("0.00"), to_decimal(venda.valor_restante) - valor)

        # 3
        todas = self.db.select(TABELA_PARCELAS, {"creditsaleid": venda.id}, colunas="id,status")
        quitada = all(r.get("status") == PARCELA_PAGA for r in todas)
        novo_status = VENDA_QUITADA if quitada else VENDA_EM_ABERTO

        linhas = self.db.update(
            TABELA_VENDAS,
            {"totalpaid": float(novo_total_pago), "remainingamount": float(novo_restante), "status": novo_status},
            {"id": venda.id},
        )
        if linhas:
            venda = VendaFiado.from_row(linhas[0])
        else:
            venda.total_pago = float(novo_total_pago)
            venda.valor_restante = float(novo_restante)
            venda.status = novo_status
        self._substituir_venda(venda)
        logger.info(
            f"Parcela {parcela.numero}/{venda.numero_parcelas} da venda {venda.id} paga "
            f"({forma_pagamento}); restante {float(novo_restante):.2f}"
        )

        # 4
        transacao = None
        try:
            transacao = self._lancar_recebimento(venda, parcela, forma_pagamento, data_pagamento)
        except Exception:
            logger.exception(
                f"Pagamento da parcela {parcela_id} registrado, mas o lançamento no caixa falhou"
            )
        return PagamentoParcela(parcela=parcela, venda=venda, transacao=transacao)

    def _lancar_recebimento(self, venda: VendaFiado, parcela: Parcela, forma_pagamento: str, data_pagamento: str):
        descricao = descricao_pagamento(venda, parcela)
        if self.transacoes is not None:
            return self.transacoes.adicionar(
                cliente=venda.cliente,
                servico=descricao,
                forma_pagamento=forma_pagamento,
                subtotal=parcela.valor,
                desconto=0.0,
                valor=parcela.valor,
                data=data_pagamento,
                tipo=TIPO_PRODUTO,
                cliente_id=venda.cliente_id,
            )
        tx = Transacao(
            cliente=venda.cliente,
            servico=descricao,
            data=data_pagamento,
            forma_pagamento=forma_pagamento,
            subtotal=parcela.valor,
            desconto=0.0,
            valor=parcela.valor,
            tipo=TIPO_PRODUTO,
            cliente_id=venda.cliente_id,
        )
        linhas = self.db.insert("transactions", tx.to_row())
        return Transacao.from_row(linhas[0]) if linhas else None

    # ---------------------------------------------------------
    # Reconciliação de atrasos (sob demanda)
    # ---------------------------------------------------------
    def atualizar_status_atrasados(self, hoje: Optional[date] = None) -> int:
        """
        - Parcelas Pendente vencidas antes de hoje -> Atrasada
        - Vendas não quitadas: reclassificadas pelas parcelas
          (Quitado se todas pagas, senão Atrasado se alguma atrasada, senão Em Aberto)
        Retorna quantas vendas mudaram de status.
        """
        hoje = hoje or date.today()
        self.db.update(
            TABELA_PARCELAS,
            {"status": PARCELA_ATRASADA},
            {"status": PARCELA_PENDENTE, "duedate": ("lt", hoje.isoformat())},
        )

        alteradas = 0
        abertas = self.db.select(TABELA_VENDAS, {"status": ("neq", VENDA_QUITADA)}, colunas="id,status")
        for v in abertas:
            parcelas = self.db.select(TABELA_PARCELAS, {"creditsaleid": v["id"]}, colunas="id,status")
            if not parcelas:
                continue
            novo = status_venda(parcelas)
            if novo != v.get("status"):
                self.db.update(TABELA_VENDAS, {"status": novo}, {"id": v["id"]})
                alteradas += 1

        if alteradas:
            logger.info(f"{alteradas} venda(s) no fiado com status atualizado")
        self.carregar()
        return alteradas

    # ---------------------------------------------------------
    # Cache local
    # ---------------------------------------------------------
    def _substituir_parcela(self, parcela: Parcela) -> None:
        if any(p.id == parcela.id for p in self.parcelas):
            self.parcelas = [parcela if p.id == parcela.id else p for p in self.parcelas]
        else:
            self.parcelas.append(parcela)

    def _substituir_venda(self, venda: VendaFiado) -> None:
        if any(v.id == venda.id for v in self.vendas):
            self.vendas = [venda if v.id == venda.id else v for v in self.vendas]
        else:
            self.vendas.insert(0, venda)
