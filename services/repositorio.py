# services/repositorio.py
import logging
from typing import Generic, Optional, TypeVar

logger = logging.getLogger("barbearia")

T = TypeVar("T")


class Repositorio(Generic[T]):
    """
    CRUD genérico sobre uma tabela remota, mantendo em memória a lista
    já carregada (self.itens). Subclasses definem tabela, modelo e ordem.
    """
    tabela: str = ""
    modelo: type = None
    ordem: list[str] = ["id"]
    # Atributo usado para reordenar a lista local após inserções/edições
    ordenar_por: Optional[str] = None
    novos_no_topo: bool = False

    def __init__(self, db, bus=None):
        """`db` expõe select/insert/update/delete (SupabaseService ou equivalente)."""
        self.db = db
        self.bus = bus
        self.itens: list[T] = []

    # ---------------------------------------------------------
    # Leitura
    # ---------------------------------------------------------
    def carregar(self, **_) -> list[T]:
        linhas = self.db.select(self.tabela, ordem=self.ordem)
        self.itens = [self.modelo.from_row(r) for r in linhas]
        return self.itens

    def por_id(self, item_id) -> Optional[T]:
        return next((x for x in self.itens if x.id == item_id), None)

    def _buscar_remoto(self, item_id) -> Optional[T]:
        row = self.db.single(self.tabela, {"id": item_id})
        return self.modelo.from_row(row) if row else None

    # ---------------------------------------------------------
    # Escrita (remoto primeiro, depois a lista local)
    # ---------------------------------------------------------
    def _reordenar(self) -> None:
        if self.ordenar_por:
            self.itens.sort(key=lambda x: str(getattr(x, self.ordenar_por) or "").lower())

    def _inserir(self, entidade: T) -> T:
        try:
            linhas = self.db.insert(self.tabela, entidade.to_row())
        except Exception:
            logger.error(f"Erro ao inserir em {self.tabela}")
            raise
        if not linhas:
            raise RuntimeError(f"Falha ao criar registro em {self.tabela}.")
        novo = self.modelo.from_row(linhas[0])
        if self.novos_no_topo:
            self.itens.insert(0, novo)
        else:
            self.itens.append(novo)
        self._reordenar()
        return novo

    def _atualizar(self, item_id, valores: dict) -> Optional[T]:
        if not valores:
            return self.por_id(item_id)
        try:
            linhas = self.db.update(self.tabela, valores, {"id": item_id})
        except Exception:
            logger.error(f"Erro ao atualizar {self.tabela} id={item_id}")
            raise
        if not linhas:
            return None
        atualizado = self.modelo.from_row(linhas[0])
        self.itens = [atualizado if x.id == item_id else x for x in self.itens]
        self._reordenar()
        return atualizado

    def excluir(self, item_id) -> None:
        try:
            self.db.delete(self.tabela, {"id": item_id})
        except Exception:
            logger.error(f"Erro ao excluir {self.tabela} id={item_id}")
            raise
        self.itens = [x for x in self.itens if x.id != item_id]
