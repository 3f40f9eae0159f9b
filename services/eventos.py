# services/eventos.py
import logging
from collections import defaultdict
from typing import Callable

logger = logging.getLogger("barbearia")

# Tópicos
CLIENTE_ATUALIZADO = "cliente_atualizado"


class EventBus:
    """
    Canal publish/subscribe em processo.
    Entrega síncrona, na ordem de inscrição. Um assinante com erro é
    registrado no log e não impede a entrega aos demais.
    """

    def __init__(self):
        self._assinantes: dict[str, list[Callable]] = defaultdict(list)

    def subscribe(self, topico: str, callback: Callable) -> None:
        if callback not in self._assinantes[topico]:
            self._assinantes[topico].append(callback)

    def unsubscribe(self, topico: str, callback: Callable) -> None:
        if callback in self._assinantes.get(topico, []):
            self._assinantes[topico].remove(callback)

    def publish(self, topico: str, **payload) -> int:
        """Notifica os assinantes. Retorna quantos receberam sem erro."""
        entregues = 0
        for cb in list(self._assinantes.get(topico, [])):
            try:
                cb(**payload)
                entregues += 1
            except Exception:
                logger.exception(f"Assinante de '{topico}' falhou")
        return entregues
