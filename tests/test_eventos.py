from services.eventos import CLIENTE_ATUALIZADO, EventBus


def test_assinante_com_erro_nao_bloqueia_os_demais():
    bus = EventBus()
    recebidos = []

    def quebra(**_):
        raise RuntimeError("falhou")

    bus.subscribe(CLIENTE_ATUALIZADO, quebra)
    bus.subscribe(CLIENTE_ATUALIZADO, lambda **p: recebidos.append(p["cliente_id"]))

    assert bus.publish(CLIENTE_ATUALIZADO, cliente_id=5) == 1
    assert recebidos == [5]


def test_inscricao_duplicada_e_cancelamento():
    bus = EventBus()
    recebidos = []

    def anotar(**p):
        recebidos.append(p)

    bus.subscribe(CLIENTE_ATUALIZADO, anotar)
    bus.subscribe(CLIENTE_ATUALIZADO, anotar)
    bus.publish(CLIENTE_ATUALIZADO, cliente_id=1)
    bus.unsubscribe(CLIENTE_ATUALIZADO, anotar)
    bus.publish(CLIENTE_ATUALIZADO, cliente_id=2)

    assert recebidos == [{"cliente_id": 1}]
    assert bus.publish("outro_topico") == 0
