# services/agendamentos.py
import logging
from datetime import date
from typing import Optional

from services.eventos import CLIENTE_ATUALIZADO
from services.repositorio import Repositorio
from services.schemas import Agendamento, TIPO_SERVICO
from services.status import (
    AGENDAMENTO_ATENDIDO,
    AGENDAMENTO_CONFIRMADO,
    validar_transicao_agendamento,
)

logger = logging.getLogger("barbearia")


class AgendamentosService(Repositorio[Agendamento]):
    """
    Agenda de visitas (data + hora) com status que só avança:
    Confirmado -> Chegou -> Atendido.
    """
    tabela = "appointments"
    modelo = Agendamento
    ordem = ["date", "time"]

    def __init__(self, db, bus=None):
        super().__init__(db, bus)
        if bus is not None:
            bus.subscribe(CLIENTE_ATUALIZADO, self.carregar)

    def _reordenar(self) -> None:
        self.itens.sort(key=lambda a: (a.data or "", a.hora or ""))

    def adicionar(
        self,
        cliente: str,
        servico: str,
        data: str,
        hora: str,
        cliente_id: Optional[int] = None,
    ) -> Agendamento:
        if not (cliente or "").strip():
            raise ValueError("Informe o cliente.")
        if not (servico or "").strip():
            raise ValueError("Informe o serviço.")
        if not data or not hora:
            raise ValueError("Informe data e horário.")
        ag = Agendamento(
            cliente=cliente.strip(),
            servico=servico.strip(),
            data=data,
            hora=hora[:5],
            status=AGENDAMENTO_CONFIRMADO,
            cliente_id=cliente_id,
        )
        return self._inserir(ag)

    def editar(
        self,
        agendamento_id: int,
        cliente: Optional[str] = None,
        servico: Optional[str] = None,
        data: Optional[str] = None,
        hora: Optional[str] = None,
        cliente_id: Optional[int] = None,
    ) -> Optional[Agendamento]:
        """Altera dados da visita; o status não muda por aqui."""
        valores = {}
        if cliente is not None:
            valores["clientname"] = cliente.strip()
        if servico is not None:
            valores["service"] = servico.strip()
        if data is not None:
            valores["date"] = data
        if hora is not None:
            valores["time"] = hora[:5]
        if cliente_id is not None:
            valores["client_id"] = cliente_id
        return self._atualizar(agendamento_id, valores)

    def atualizar_status(self, agendamento_id: int, novo_status: str) -> Optional[Agendamento]:
        """
        Avança o status. Repetir ou voltar levanta TransicaoInvalida antes de
        qualquer chamada remota.
        """
        atual = self.por_id(agendamento_id) or self._buscar_remoto(agendamento_id)
        if atual is None:
            raise ValueError(f"Agendamento {agendamento_id} não encontrado.")
        validar_transicao_agendamento(atual.status, novo_status)
        return self._atualizar(agendamento_id, {"status": novo_status})

    def finalizar(
        self,
        agendamento_id: int,
        transacoes,
        forma_pagamento: str,
        subtotal,
        desconto=0.0,
        servico: Optional[str] = None,
        data: Optional[str] = None,
    ):
        """
        Registra o pagamento da visita e marca o agendamento como Atendido.
        São duas escritas independentes: se a segunda falhar a transação já
        gravada permanece (sem rollback).
        """
        ag = self.por_id(agendamento_id) or self._buscar_remoto(agendamento_id)
        if ag is None:
            raise ValueError(f"Agendamento {agendamento_id} não encontrado.")
        validar_transicao_agendamento(ag.status, AGENDAMENTO_ATENDIDO)

        tx = transacoes.adicionar(
            cliente=ag.cliente,
            servico=servico or ag.servico,
            forma_pagamento=forma_pagamento,
            subtotal=subtotal,
            desconto=desconto,
            data=data or date.today().isoformat(),
            tipo=TIPO_SERVICO,
            de_agendamento=True,
            cliente_id=ag.cliente_id,
        )
        try:
            self._atualizar(agendamento_id, {"status": AGENDAMENTO_ATENDIDO})
        except Exception:
            logger.error(
                f"Transação {tx.id} gravada, mas o agendamento {agendamento_id} "
                f"não foi marcado como Atendido"
            )
            raise
        return tx

    def do_dia(self, dia: Optional[str] = None) -> list[Agendamento]:
        dia = dia or date.today().isoformat()
        return sorted((a for a in self.itens if a.data == dia), key=lambda a: a.hora)
