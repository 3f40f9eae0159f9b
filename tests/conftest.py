import copy
import itertools
from datetime import date

import pytest

from supabase_service import OPERADORES, SupabaseError


def _cmp(op, atual, alvo):
    if isinstance(alvo, date):
        alvo = alvo.isoformat()
    if alvo is None:
        return atual is None
    if op == "eq":
        return atual == alvo
    if op == "neq":
        return atual != alvo
    if atual is None:
        return False
    return {
        "lt": atual < alvo,
        "lte": atual <= alvo,
        "gt": atual > alvo,
        "gte": atual >= alvo,
    }[op]


def _casa(linha, filtros):
    for col, f in (filtros or {}).items():
        op, valor = f if isinstance(f, tuple) else ("eq", f)
        assert op in OPERADORES
        if not _cmp(op, linha.get(col), valor):
            return False
    return True


class FakeSupabase:
    """
    Banco em memória com a mesma interface de tabela do SupabaseService.
    `falhar[(operacao, tabela)] = exc` faz a próxima chamada levantar `exc`.
    """

    def __init__(self, **tabelas):
        self.tabelas = {k: [dict(r) for r in v] for k, v in tabelas.items()}
        self._ids = itertools.count(1000)
        self.falhar = {}
        self.chamadas = []
        self.autenticado = True
        for linhas in self.tabelas.values():
            for i, r in enumerate(linhas, start=1):
                r.setdefault("id", i)
                r.setdefault("created_at", f"2024-01-01T10:{i % 60:02d}:00+00:00")

    def _registrar(self, op, tabela):
        self.chamadas.append((op, tabela))
        exc = self.falhar.pop((op, tabela), None)
        if exc is not None:
            raise exc

    def _t(self, tabela):
        return self.tabelas.setdefault(tabela, [])

    def select(self, tabela, filtros=None, ordem=None, colunas="*"):
        self._registrar("select", tabela)
        linhas = [copy.deepcopy(r) for r in self._t(tabela) if _casa(r, filtros)]
        for col in reversed(ordem or []):
            desc = col.startswith("-")
            nome = col.lstrip("-")
            linhas.sort(key=lambda r: (r.get(nome) is None, r.get(nome) or ""), reverse=desc)
        return linhas

    def single(self, tabela, filtros):
        linhas = self.select(tabela, filtros)
        return linhas[0] if linhas else None

    def insert(self, tabela, linhas):
        self._registrar("insert", tabela)
        if isinstance(linhas, dict):
            linhas = [linhas]
        criadas = []
        for r in linhas:
            nova = dict(r)
            nova.setdefault("id", next(self._ids))
            nova.setdefault("created_at", "2024-06-01T12:00:00+00:00")
            self._t(tabela).append(nova)
            criadas.append(copy.deepcopy(nova))
        return criadas

    def update(self, tabela, valores, filtros):
        if not filtros:
            raise ValueError("update sem filtros")
        self._registrar("update", tabela)
        out = []
        for r in self._t(tabela):
            if _casa(r, filtros):
                r.update(valores)
                out.append(copy.deepcopy(r))
        return out

    def delete(self, tabela, filtros):
        if not filtros:
            raise ValueError("delete sem filtros")
        self._registrar("delete", tabela)
        self.tabelas[tabela] = [r for r in self._t(tabela) if not _casa(r, filtros)]

    def upsert(self, tabela, linha, on_conflict="id"):
        self._registrar("upsert", tabela)
        for r in self._t(tabela):
            if r.get(on_conflict) == linha.get(on_conflict):
                r.update(linha)
                return [copy.deepcopy(r)]
        return self.insert(tabela, linha)


@pytest.fixture
def db():
    return FakeSupabase()


@pytest.fixture
def erro_remoto():
    return SupabaseError("Erro 500 em POST", status_code=500, corpo="boom")


@pytest.fixture
def banco_com():
    """Fábrica: banco_com(clients=[...], transactions=[...])."""
    return FakeSupabase
