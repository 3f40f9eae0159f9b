# supabase_service.py
import logging
from datetime import date
from typing import Any, Optional, Union

import requests

logger = logging.getLogger("barbearia")
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(logging.INFO)

OPERADORES = ("eq", "neq", "lt", "lte", "gt", "gte")

Filtro = Union[Any, tuple]


class SupabaseError(RuntimeError):
    """Falha retornada pela API REST do Supabase (status != 2xx)."""

    def __init__(self, mensagem: str, status_code: Optional[int] = None, corpo: str = ""):
        super().__init__(mensagem)
        self.status_code = status_code
        self.corpo = corpo


def _valor_filtro(v: Any) -> str:
    if isinstance(v, bool):
        return "true" if v else "false"
    if isinstance(v, date):
        return v.isoformat()
    return str(v)


def montar_filtros(filtros: Optional[dict]) -> list[tuple[str, str]]:
    """
    Converte {coluna: valor} ou {coluna: (operador, valor)} para os
    parâmetros do PostgREST (ex.: ("duedate", "lt.2024-02-10")).
    """
    params = []
    for coluna, filtro in (filtros or {}).items():
        if isinstance(filtro, tuple):
            op, valor = filtro
        else:
            op, valor = "eq", filtro
        if op not in OPERADORES:
            raise ValueError(f"Operador de filtro inválido: {op}")
        if valor is None:
            params.append((coluna, "is.null"))
        else:
            params.append((coluna, f"{op}.{_valor_filtro(valor)}"))
    return params


def montar_ordem(ordem: Optional[list[str]]) -> Optional[str]:
    """['date', '-created_at'] -> 'date.asc,created_at.desc'."""
    if not ordem:
        return None
    partes = []
    for col in ordem:
        if col.startswith("-"):
            partes.append(f"{col[1:]}.desc")
        else:
            partes.append(f"{col}.asc")
    return ",".join(partes)


class SupabaseService:
    """
    Cliente da API REST do Supabase (PostgREST + Auth) usado como banco
    hospedado da barbearia: CRUD por tabela, filtros simples e ordenação.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        access_token: Optional[str] = None,
        request_timeout: int = 15,
        user_agent: str = "barbearia-streamlit",
    ):
        if not url or not api_key:
            raise ValueError("URL e chave da API do Supabase são obrigatórias.")

        self.base_url = url.rstrip("/")
        self.api_key = api_key
        self.timeout = request_timeout

        self.session = requests.Session()
        self.session.headers.update({
            "apikey": api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
            "User-Agent": user_agent,
        })
        self._definir_token(access_token)

    def _definir_token(self, token: Optional[str]) -> None:
        self.access_token = token
        self.session.headers["Authorization"] = f"Bearer {token or self.api_key}"

    def _rest_url(self, tabela: str) -> str:
        return f"{self.base_url}/rest/v1/{tabela}"

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        if resp.status_code >= 400:
            logger.error(f"{method} {url} -> {resp.status_code}: {resp.text[:300]}")
            raise SupabaseError(
                f"Erro {resp.status_code} em {method} {url}",
                status_code=resp.status_code,
                corpo=resp.text,
            )
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> list[dict]:
        if not resp.content:
            return []
        data = resp.json()
        return data if isinstance(data, list) else [data]

    # ---------------------------------------------------------
    # Tabelas
    # ---------------------------------------------------------
    def select(
        self,
        tabela: str,
        filtros: Optional[dict] = None,
        ordem: Optional[list[str]] = None,
        colunas: str = "*",
    ) -> list[dict]:
        params = [("select", colunas)] + montar_filtros(filtros)
        order = montar_ordem(ordem)
        if order:
            params.append(("order", order))
        return self._json(self._request("GET", self._rest_url(tabela), params=params))

    def single(self, tabela: str, filtros: dict) -> Optional[dict]:
        """Primeira linha que atende aos filtros, ou None."""
        linhas = self.select(tabela, filtros)
        return linhas[0] if linhas else None

    def insert(self, tabela: str, linhas: Union[dict, list[dict]]) -> list[dict]:
        if isinstance(linhas, dict):
            linhas = [linhas]
        resp = self._request(
            "POST",
            self._rest_url(tabela),
            json=linhas,
            headers={"Prefer": "return=representation"},
        )
        return self._json(resp)

    def update(self, tabela: str, valores: dict, filtros: dict) -> list[dict]:
        if not filtros:
            raise ValueError("update sem filtros alteraria a tabela inteira.")
        resp = self._request(
            "PATCH",
            self._rest_url(tabela),
            params=montar_filtros(filtros),
            json=valores,
            headers={"Prefer": "return=representation"},
        )
        return self._json(resp)

    def delete(self, tabela: str, filtros: dict) -> None:
        if not filtros:
            raise ValueError("delete sem filtros apagaria a tabela inteira.")
        self._request("DELETE", self._rest_url(tabela), params=montar_filtros(filtros))

    def upsert(self, tabela: str, linha: dict, on_conflict: str = "id") -> list[dict]:
        resp = self._request(
            "POST",
            self._rest_url(tabela),
            params=[("on_conflict", on_conflict)],
            json=[linha],
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return self._json(resp)

    # ---------------------------------------------------------
    # Autenticação
    # ---------------------------------------------------------
    def entrar(self, email: str, senha: str) -> dict:
        """Login por e-mail/senha. Guarda o access_token para as próximas chamadas."""
        resp = self._request(
            "POST",
            f"{self.base_url}/auth/v1/token",
            params=[("grant_type", "password")],
            json={"email": email, "password": senha},
        )
        data = resp.json()
        self._definir_token(data.get("access_token"))
        logger.info(f"Sessão iniciada para {email}")
        return data

    def sair(self) -> None:
        if self.access_token:
            self._request("POST", f"{self.base_url}/auth/v1/logout")
        self._definir_token(None)

    @property
    def autenticado(self) -> bool:
        return bool(self.access_token)

    def ping(self) -> bool:
        """Servidor acessível (qualquer resposta abaixo de 500)."""
        try:
            r = self.session.get(f"{self.base_url}/rest/v1/", timeout=self.timeout)
        except requests.exceptions.RequestException:
            return False
        return r.status_code < 500
