# services/transacoes.py
from datetime import date
from typing import Optional

from services.eventos import CLIENTE_ATUALIZADO
from services.finance_core import parse_valor, to_decimal
from services.repositorio import Repositorio
from services.schemas import Transacao, TIPO_PRODUTO, TIPO_SERVICO

# Colunas remotas editáveis
_COLUNAS = {
    "cliente": "clientname",
    "servico": "service",
    "data": "date",
    "forma_pagamento": "paymentmethod",
    "subtotal": "subtotal",
    "desconto": "discount",
    "valor": "value",
    "tipo": "type",
    "de_agendamento": "from_appointment",
    "cliente_id": "client_id",
}


class TransacoesService(Repositorio[Transacao]):
    """Serviços/vendas já pagos (entrada de caixa)."""
    tabela = "transactions"
    modelo = Transacao
    ordem = ["-created_at"]
    novos_no_topo = True

    def __init__(self, db, bus=None):
        super().__init__(db, bus)
        if bus is not None:
            bus.subscribe(CLIENTE_ATUALIZADO, self.carregar)

    def adicionar(
        self,
        cliente: str,
        servico: str,
        forma_pagamento: str,
        subtotal,
        desconto=0.0,
        valor=None,
        data: Optional[str] = None,
        tipo: str = TIPO_SERVICO,
        de_agendamento: bool = False,
        cliente_id: Optional[int] = None,
    ) -> Transacao:
        if tipo not in (TIPO_SERVICO, TIPO_PRODUTO):
            raise ValueError(f"Tipo de transação inválido: {tipo}")
        if not (forma_pagamento or "").strip():
            raise ValueError("Informe a forma de pagamento.")

        subtotal = parse_valor(subtotal)
        desconto = parse_valor(desconto or 0)
        if valor is None:
            valor = float(to_decimal(subtotal) - to_decimal(desconto))
        if valor < 0:
            raise ValueError("Desconto maior que o subtotal.")

        tx = Transacao(
            cliente=(cliente or "").strip(),
            servico=(servico or "").strip(),
            data=data or date.today().isoformat(),
            forma_pagamento=forma_pagamento,
            subtotal=subtotal,
            desconto=desconto,
            valor=float(valor),
            tipo=tipo,
            de_agendamento=de_agendamento,
            cliente_id=cliente_id,
        )
        return self._inserir(tx)

    def atualizar(self, transacao_id: int, **campos) -> Optional[Transacao]:
        """Envia só as colunas informadas (ex.: atualizar(7, servico='Corte'))."""
        valores = {}
        for campo, v in campos.items():
            if campo not in _COLUNAS:
                raise ValueError(f"Campo desconhecido: {campo}")
            if campo in ("subtotal", "desconto", "valor"):
                v = parse_valor(v)
            valores[_COLUNAS[campo]] = v
        return self._atualizar(transacao_id, valores)
