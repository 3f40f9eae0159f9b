# services/clientes.py
import logging
from typing import Optional

from services.eventos import CLIENTE_ATUALIZADO
from services.repositorio import Repositorio
from services.schemas import Cliente, capitalizar_nome, formatar_cpf, formatar_whatsapp
from services.utils import somente_digitos

logger = logging.getLogger("barbearia")

# Tabelas que guardam o nome do cliente em `clientname` + `client_id`
TABELAS_COM_CLIENTE = ("transactions", "appointments", "credit_sales")


class ClientesService(Repositorio[Cliente]):
    """Cadastro de clientes; fonte do nome exibido nos demais registros."""
    tabela = "clients"
    modelo = Cliente
    ordem = ["fullname"]
    ordenar_por = "nome"

    def adicionar(
        self,
        nome: str,
        whatsapp: str,
        apelido: Optional[str] = None,
        cpf: Optional[str] = None,
        observacao: Optional[str] = None,
    ) -> Cliente:
        if not (nome or "").strip():
            raise ValueError("Nome do cliente é obrigatório.")
        cliente = Cliente(
            nome=capitalizar_nome(nome),
            whatsapp=formatar_whatsapp(whatsapp),
            apelido=capitalizar_nome(apelido) if apelido else None,
            cpf=formatar_cpf(cpf),
            observacao=(observacao or "").strip() or None,
        )
        return self._inserir(cliente)

    def atualizar(
        self,
        cliente_id: int,
        nome: Optional[str] = None,
        whatsapp: Optional[str] = None,
        apelido: Optional[str] = None,
        cpf: Optional[str] = None,
        observacao: Optional[str] = None,
    ) -> Cliente:
        """
        Atualiza o cadastro. Quando nome ou WhatsApp mudam, o novo rótulo é
        propagado para transações, agendamentos e vendas no fiado com o mesmo
        client_id, e CLIENTE_ATUALIZADO é publicado no barramento.
        """
        antigo = self.por_id(cliente_id) or self._buscar_remoto(cliente_id)
        if antigo is None:
            raise ValueError("Cliente não encontrado.")

        valores = {}
        if nome is not None:
            if not nome.strip():
                raise ValueError("Nome do cliente é obrigatório.")
            valores["fullname"] = capitalizar_nome(nome)
        if whatsapp is not None:
            valores["whatsapp"] = formatar_whatsapp(whatsapp)
        if apelido is not None:
            valores["nickname"] = capitalizar_nome(apelido) if apelido.strip() else None
        if cpf is not None:
            valores["cpf"] = formatar_cpf(cpf) if cpf.strip() else None
        if observacao is not None:
            valores["observation"] = observacao.strip() or None

        atualizado = self._atualizar(cliente_id, valores) or antigo

        if nome is not None or whatsapp is not None:
            self._propagar_rotulo(cliente_id, atualizado.nome, atualizado.whatsapp)
            if self.bus is not None:
                self.bus.publish(CLIENTE_ATUALIZADO, cliente_id=cliente_id)
        return atualizado

    def _propagar_rotulo(self, cliente_id: int, novo_nome: str, novo_whatsapp: str) -> int:
        """Reescreve `clientname` só nos registros ligados a este client_id."""
        rotulo_com_fone = f"{novo_nome}|{novo_whatsapp}"
        alterados = 0
        for tabela in TABELAS_COM_CLIENTE:
            linhas = self.db.select(tabela, {"client_id": cliente_id}, colunas="id,clientname")
            for r in linhas:
                # Mantém o formato "Nome|Telefone" de quem já o usava
                novo = rotulo_com_fone if "|" in (r.get("clientname") or "") else novo_nome
                if novo != r.get("clientname"):
                    self.db.update(tabela, {"clientname": novo}, {"id": r["id"]})
                    alterados += 1
        logger.info(f"Cliente {cliente_id}: {alterados} registro(s) com nome atualizado")
        return alterados

    def buscar(self, texto: str) -> list[Cliente]:
        """Busca por nome, apelido, WhatsApp ou CPF (dígitos)."""
        t = (texto or "").strip().lower()
        if not t:
            return list(self.itens)
        digitos = somente_digitos(t)
        out = []
        for c in self.itens:
            if t in c.nome.lower() or t in (c.apelido or "").lower():
                out.append(c)
            elif digitos and (digitos in somente_digitos(c.whatsapp) or digitos in somente_digitos(c.cpf)):
                out.append(c)
        return out
