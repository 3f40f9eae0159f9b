import json
from datetime import date

import pytest
import requests

from supabase_service import SupabaseError, SupabaseService, montar_filtros, montar_ordem


class Resposta:
    def __init__(self, status_code=200, corpo=None):
        self.status_code = status_code
        self.content = json.dumps(corpo).encode() if corpo is not None else b""
        self.text = self.content.decode()

    def json(self):
        return json.loads(self.content)


@pytest.fixture
def svc(monkeypatch):
    s = SupabaseService(url="https://exemplo.supabase.co/", api_key="anon")
    s.pedidos = []
    s.respostas = []

    def request(method, url, **kwargs):
        s.pedidos.append((method, url, kwargs))
        return s.respostas.pop(0) if s.respostas else Resposta(200, [])

    monkeypatch.setattr(s.session, "request", request)
    return s


def test_montar_filtros():
    assert montar_filtros({
        "client_id": 3,
        "duedate": ("lt", date(2024, 2, 10)),
        "from_appointment": True,
        "cpf": None,
        "status": ("neq", "Quitado"),
    }) == [
        ("client_id", "eq.3"),
        ("duedate", "lt.2024-02-10"),
        ("from_appointment", "eq.true"),
        ("cpf", "is.null"),
        ("status", "neq.Quitado"),
    ]
    with pytest.raises(ValueError):
        montar_filtros({"id": ("like", "x")})


def test_montar_ordem():
    assert montar_ordem(["date", "-created_at"]) == "date.asc,created_at.desc"
    assert montar_ordem([]) is None


def test_credenciais_obrigatorias():
    with pytest.raises(ValueError):
        SupabaseService(url="", api_key="x")


def test_select_monta_url_e_parametros(svc):
    svc.respostas.append(Resposta(200, [{"id": 1}]))

    linhas = svc.select("clients", {"id": 1}, ordem=["fullname"])

    assert linhas == [{"id": 1}]
    method, url, kwargs = svc.pedidos[0]
    assert (method, url) == ("GET", "https://exemplo.supabase.co/rest/v1/clients")
    assert kwargs["params"] == [("select", "*"), ("id", "eq.1"), ("order", "fullname.asc")]


def test_insert_pede_representacao(svc):
    svc.respostas.append(Resposta(201, [{"id": 9, "name": "Corte"}]))
    assert svc.insert("services", {"name": "Corte"})[0]["id"] == 9
    _, _, kwargs = svc.pedidos[0]
    assert kwargs["json"] == [{"name": "Corte"}]
    assert kwargs["headers"]["Prefer"] == "return=representation"


def test_erro_http_vira_supabase_error(svc):
    svc.respostas.append(Resposta(409, {"message": "duplicate key"}))
    with pytest.raises(SupabaseError) as exc:
        svc.insert("clients", {"fullname": "Ana"})
    assert exc.value.status_code == 409
    assert "duplicate key" in exc.value.corpo


def test_update_e_delete_exigem_filtros(svc):
    with pytest.raises(ValueError):
        svc.update("clients", {"fullname": "X"}, {})
    with pytest.raises(ValueError):
        svc.delete("clients", {})
    assert svc.pedidos == []


def test_delete_sem_corpo(svc):
    svc.respostas.append(Resposta(204))
    svc.delete("expenses", {"id": 4})
    assert svc.pedidos[0][2]["params"] == [("id", "eq.4")]


def test_entrar_e_sair(svc):
    assert not svc.autenticado
    svc.respostas.append(Resposta(200, {"access_token": "jwt-123"}))

    svc.entrar("dono@barbearia.com", "segredo")

    assert svc.autenticado
    assert svc.session.headers["Authorization"] == "Bearer jwt-123"

    svc.respostas.append(Resposta(204))
    svc.sair()
    assert not svc.autenticado
    assert svc.session.headers["Authorization"] == "Bearer anon"


def test_ping(svc, monkeypatch):
    monkeypatch.setattr(svc.session, "get", lambda url, **kw: Resposta(401))
    assert svc.ping()

    def sem_rede(url, **kw):
        raise requests.exceptions.ConnectionError("offline")

    monkeypatch.setattr(svc.session, "get", sem_rede)
    assert not svc.ping()
