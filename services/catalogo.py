# services/catalogo.py
from typing import Optional

from services.finance_core import parse_valor
from services.repositorio import Repositorio
from services.schemas import ItemCatalogo


class _CatalogoService(Repositorio[ItemCatalogo]):
    modelo = ItemCatalogo
    ordem = ["name"]
    ordenar_por = "nome"

    def adicionar(self, nome: str, preco) -> ItemCatalogo:
        nome = (nome or "").strip()
        if not nome:
            raise ValueError("Informe o nome.")
        return self._inserir(ItemCatalogo(nome=nome, preco=parse_valor(preco)))

    def atualizar(self, item_id: int, nome: Optional[str] = None, preco=None) -> Optional[ItemCatalogo]:
        valores = {}
        if nome is not None:
            if not nome.strip():
                raise ValueError("Informe o nome.")
            valores["name"] = nome.strip()
        if preco is not None:
            valores["price"] = parse_valor(preco)
        return self._atualizar(item_id, valores)

    def preco_de(self, nome: str) -> Optional[float]:
        alvo = (nome or "").strip().lower()
        item = next((x for x in self.itens if x.nome.strip().lower() == alvo), None)
        return item.preco if item else None


class ServicosService(_CatalogoService):
    tabela = "services"


class ProdutosService(_CatalogoService):
    tabela = "products"
