# services/schemas.py
from dataclasses import dataclass, asdict
from typing import Optional

from services.status import (
    AGENDAMENTO_CONFIRMADO,
    PARCELA_PENDENTE,
    VENDA_EM_ABERTO,
)
from services.utils import somente_digitos

COR_PADRAO = "#6b7280"

TIPO_SERVICO = "service"
TIPO_PRODUTO = "product"

FORMAS_PAGAMENTO = ("PIX", "Crédito", "Débito", "Dinheiro", "Fiado")
FORMA_FIADO = "Fiado"


def _float(v, default: float = 0.0) -> float:
    try:
        return float(v) if v is not None else default
    except (TypeError, ValueError):
        return default


def _sem_nulos(d: dict) -> dict:
    return {k: v for k, v in d.items() if v is not None}


# ---------------------------------------------------------
# Normalização de dados de cliente
# ---------------------------------------------------------
def capitalizar_nome(texto: Optional[str]) -> Optional[str]:
    """
    'joão DA silva' -> 'João da Silva'.
    Palavras com mais de 3 letras ganham inicial maiúscula, as demais ficam
    minúsculas (preposições), exceto a primeira palavra.
    """
    if not texto:
        return texto
    palavras = texto.strip().lower().split()
    out = []
    for i, p in enumerate(palavras):
        out.append(p.capitalize() if (len(p) > 3 or i == 0) else p)
    return " ".join(out)


def formatar_whatsapp(whatsapp: str) -> str:
    """
    Normaliza para (DD) XXXX-XXXX ou (DD) XXXXX-XXXX.
    Levanta ValueError se não tiver 10 ou 11 dígitos.
    """
    n = somente_digitos(whatsapp)
    if len(n) == 10:
        return f"({n[:2]}) {n[2:6]}-{n[6:]}"
    if len(n) == 11:
        return f"({n[:2]}) {n[2:7]}-{n[7:]}"
    raise ValueError("WhatsApp inválido: informe DDD + número (10 ou 11 dígitos).")


def formatar_cpf(cpf: Optional[str]) -> Optional[str]:
    if not cpf:
        return None
    n = somente_digitos(cpf)
    if len(n) != 11:
        raise ValueError("CPF inválido: deve ter 11 dígitos.")
    return f"{n[:3]}.{n[3:6]}.{n[6:9]}-{n[9:]}"


# ---------------------------------------------------------
# Entidades (campos internos <-> colunas remotas)
# ---------------------------------------------------------
@dataclass
class Cliente:
    id: Optional[int] = None
    nome: str = ""
    whatsapp: str = ""
    apelido: Optional[str] = None
    cpf: Optional[str] = None
    observacao: Optional[str] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "Cliente":
        return cls(
            id=r.get("id"),
            nome=r.get("fullname") or "",
            whatsapp=r.get("whatsapp") or "",
            apelido=r.get("nickname") or None,
            cpf=r.get("cpf") or None,
            observacao=r.get("observation") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return {
            "fullname": self.nome,
            "whatsapp": self.whatsapp,
            "nickname": self.apelido,
            "observation": self.observacao,
            "cpf": self.cpf,
        }


@dataclass
class Agendamento:
    id: Optional[int] = None
    cliente: str = ""
    servico: str = ""
    data: str = ""
    hora: str = ""
    status: str = AGENDAMENTO_CONFIRMADO
    cliente_id: Optional[int] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "Agendamento":
        return cls(
            id=r.get("id"),
            cliente=r.get("clientname") or "",
            servico=r.get("service") or "",
            data=r.get("date") or "",
            hora=str(r.get("time") or "")[:5],
            status=r.get("status") or AGENDAMENTO_CONFIRMADO,
            cliente_id=r.get("client_id") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return _sem_nulos({
            "clientname": self.cliente,
            "service": self.servico,
            "date": self.data,
            "time": self.hora,
            "status": self.status,
            "client_id": self.cliente_id,
        })


@dataclass
class Transacao:
    id: Optional[int] = None
    cliente: str = ""
    servico: str = ""
    data: str = ""
    forma_pagamento: str = ""
    subtotal: float = 0.0
    desconto: float = 0.0
    valor: float = 0.0
    tipo: str = TIPO_SERVICO
    de_agendamento: bool = False
    cliente_id: Optional[int] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "Transacao":
        cliente = r.get("clientname") or ""
        de_agendamento = r.get("from_appointment")
        if de_agendamento is None:
            # Registros antigos: o rótulo "Nome|Telefone" só era gravado pela agenda
            de_agendamento = "|" in cliente
        return cls(
            id=r.get("id"),
            cliente=cliente,
            servico=r.get("service") or "",
            data=r.get("date") or "",
            forma_pagamento=r.get("paymentmethod") or "",
            subtotal=_float(r.get("subtotal")),
            desconto=_float(r.get("discount")),
            valor=_float(r.get("value")),
            tipo=r.get("type") or TIPO_SERVICO,
            de_agendamento=bool(de_agendamento),
            cliente_id=r.get("client_id") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return _sem_nulos({
            "clientname": self.cliente,
            "service": self.servico,
            "date": self.data,
            "paymentmethod": self.forma_pagamento,
            "subtotal": self.subtotal,
            "discount": self.desconto,
            "value": self.valor,
            "type": self.tipo,
            "from_appointment": self.de_agendamento,
            "client_id": self.cliente_id,
        })


@dataclass
class VendaFiado:
    id: Optional[int] = None
    cliente: str = ""
    produtos: str = ""
    valor_total: float = 0.0
    subtotal: float = 0.0
    desconto: float = 0.0
    numero_parcelas: int = 1
    primeiro_vencimento: str = ""
    status: str = VENDA_EM_ABERTO
    total_pago: float = 0.0
    valor_restante: float = 0.0
    data: str = ""
    cliente_id: Optional[int] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "VendaFiado":
        return cls(
            id=r.get("id"),
            cliente=r.get("clientname") or "",
            produtos=r.get("products") or "",
            valor_total=_float(r.get("totalamount")),
            subtotal=_float(r.get("subtotal")),
            desconto=_float(r.get("discount")),
            numero_parcelas=int(r.get("numberofinstallments") or 1),
            primeiro_vencimento=r.get("firstduedate") or "",
            status=r.get("status") or VENDA_EM_ABERTO,
            total_pago=_float(r.get("totalpaid")),
            valor_restante=_float(r.get("remainingamount")),
            data=r.get("date") or "",
            cliente_id=r.get("client_id") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return _sem_nulos({
            "clientname": self.cliente,
            "products": self.produtos,
            "totalamount": self.valor_total,
            "subtotal": self.subtotal,
            "discount": self.desconto,
            "numberofinstallments": self.numero_parcelas,
            "firstduedate": self.primeiro_vencimento,
            "status": self.status,
            "totalpaid": self.total_pago,
            "remainingamount": self.valor_restante,
            "date": self.data,
            "client_id": self.cliente_id,
        })


@dataclass
class Parcela:
    id: Optional[int] = None
    venda_id: Optional[int] = None
    numero: int = 1
    valor: float = 0.0
    vencimento: str = ""
    status: str = PARCELA_PENDENTE
    data_pagamento: Optional[str] = None
    forma_pagamento: Optional[str] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "Parcela":
        return cls(
            id=r.get("id"),
            venda_id=r.get("creditsaleid"),
            numero=int(r.get("installmentnumber") or 1),
            valor=_float(r.get("amount")),
            vencimento=r.get("duedate") or "",
            status=r.get("status") or PARCELA_PENDENTE,
            data_pagamento=r.get("paiddate") or None,
            forma_pagamento=r.get("paymentmethod") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return _sem_nulos({
            "creditsaleid": self.venda_id,
            "installmentnumber": self.numero,
            "amount": self.valor,
            "duedate": self.vencimento,
            "status": self.status,
            "paiddate": self.data_pagamento,
            "paymentmethod": self.forma_pagamento,
        })


@dataclass
class Despesa:
    id: Optional[int] = None
    descricao: str = ""
    valor: float = 0.0
    data: str = ""
    categoria: Optional[str] = None
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "Despesa":
        return cls(
            id=r.get("id"),
            descricao=r.get("description") or "",
            valor=_float(r.get("amount")),
            data=r.get("date") or "",
            categoria=r.get("category") or None,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return {
            "description": self.descricao,
            "amount": self.valor,
            "date": self.data,
            "category": self.categoria or None,
        }


@dataclass
class CategoriaDespesa:
    id: Optional[int] = None
    nome: str = ""
    cor: str = COR_PADRAO
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "CategoriaDespesa":
        return cls(
            id=r.get("id"),
            nome=r.get("name") or "",
            cor=r.get("color") or COR_PADRAO,
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return {"name": self.nome, "color": self.cor or COR_PADRAO}


@dataclass
class ItemCatalogo:
    """Serviço ou produto do catálogo (tabelas services / products)."""
    id: Optional[int] = None
    nome: str = ""
    preco: float = 0.0
    criado_em: Optional[str] = None

    @classmethod
    def from_row(cls, r: dict) -> "ItemCatalogo":
        return cls(
            id=r.get("id"),
            nome=r.get("name") or "",
            preco=_float(r.get("price")),
            criado_em=r.get("created_at"),
        )

    def to_row(self) -> dict:
        return {"name": self.nome, "price": self.preco}


@dataclass
class ConfiguracaoSistema:
    fiado_habilitado: bool = False

    @classmethod
    def from_row(cls, r: Optional[dict]) -> "ConfiguracaoSistema":
        if not r:
            return cls()
        return cls(fiado_habilitado=bool(r.get("credit_sales_enabled") or False))

    def to_row(self) -> dict:
        return {"id": 1, "credit_sales_enabled": self.fiado_habilitado}


def to_records(itens: list) -> list[dict]:
    """Lista de dataclasses -> lista de dicts (para DataFrame)."""
    return [asdict(x) for x in itens]
