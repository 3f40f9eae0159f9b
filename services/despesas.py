# services/despesas.py
from datetime import date
from typing import Optional

from services.finance_core import parse_valor
from services.repositorio import Repositorio
from services.schemas import CategoriaDespesa, Despesa, COR_PADRAO

# Categorias iniciais (mesmas do script de criação da tabela)
CATEGORIAS_PADRAO = [
    ("Aluguel", "#ef4444"),
    ("Materiais", "#3b82f6"),
    ("Salário", "#10b981"),
    ("Contas", "#f59e0b"),
    ("Manutenção", "#8b5cf6"),
    ("Marketing", "#ec4899"),
    ("Outros", "#6b7280"),
]


class DespesasService(Repositorio[Despesa]):
    tabela = "expenses"
    modelo = Despesa
    ordem = ["-date"]

    def _reordenar(self) -> None:
        self.itens.sort(key=lambda d: d.data or "", reverse=True)

    def adicionar(self, descricao: str, valor, data: Optional[str] = None, categoria: Optional[str] = None) -> Despesa:
        if not (descricao or "").strip():
            raise ValueError("Informe a descrição da despesa.")
        d = Despesa(
            descricao=descricao.strip(),
            valor=parse_valor(valor),
            data=data or date.today().isoformat(),
            categoria=(categoria or "").strip() or None,
        )
        return self._inserir(d)

    def atualizar(
        self,
        despesa_id: int,
        descricao: Optional[str] = None,
        valor=None,
        data: Optional[str] = None,
        categoria: Optional[str] = None,
    ) -> Optional[Despesa]:
        valores = {}
        if descricao is not None:
            if not descricao.strip():
                raise ValueError("Informe a descrição da despesa.")
            valores["description"] = descricao.strip()
        if valor is not None:
            valores["amount"] = parse_valor(valor)
        if data is not None:
            valores["date"] = data
        if categoria is not None:
            valores["category"] = categoria.strip() or None
        return self._atualizar(despesa_id, valores)


class CategoriasDespesaService(Repositorio[CategoriaDespesa]):
    """
    Rótulo + cor. Despesa.categoria guarda o NOME da categoria (texto livre),
    então a relação é só de consulta: renomear/excluir não mexe nas despesas.
    """
    tabela = "expense_categories"
    modelo = CategoriaDespesa
    ordem = ["name"]
    ordenar_por = "nome"

    def adicionar(self, nome: str, cor: str = COR_PADRAO) -> CategoriaDespesa:
        nome = (nome or "").strip()
        if not nome:
            raise ValueError("Informe um nome válido.")
        if any(c.nome.lower() == nome.lower() for c in self.itens):
            raise ValueError(f"Categoria '{nome}' já existe.")
        return self._inserir(CategoriaDespesa(nome=nome, cor=cor or COR_PADRAO))

    def atualizar(self, categoria_id: int, nome: Optional[str] = None, cor: Optional[str] = None) -> Optional[CategoriaDespesa]:
        valores = {}
        if nome is not None:
            if not nome.strip():
                raise ValueError("Informe um nome válido.")
            valores["name"] = nome.strip()
        if cor is not None:
            valores["color"] = cor
        return self._atualizar(categoria_id, valores)

    def cor_da_categoria(self, nome: Optional[str]) -> str:
        alvo = (nome or "").strip().lower()
        cat = next((c for c in self.itens if c.nome.lower() == alvo), None)
        return cat.cor if cat else COR_PADRAO

    def criar_padrao(self) -> list[CategoriaDespesa]:
        """Insere as categorias iniciais que ainda não existem."""
        existentes = {c.nome.lower() for c in self.itens}
        return [self.adicionar(nome, cor) for nome, cor in CATEGORIAS_PADRAO if nome.lower() not in existentes]
