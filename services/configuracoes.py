# services/configuracoes.py
import logging

from services.schemas import ConfiguracaoSistema

logger = logging.getLogger("barbearia")

TABELA = "system_settings"


class ConfiguracoesService:
    """Linha única (id=1) com a flag de venda no fiado."""

    def __init__(self, db):
        self.db = db
        self.config = ConfiguracaoSistema()

    def carregar(self) -> ConfiguracaoSistema:
        """Sem linha remota (ou tabela inexistente) usa o padrão: fiado desativado."""
        try:
            row = self.db.single(TABELA, {"id": 1})
        except Exception as e:
            logger.warning(f"Configurações indisponíveis, usando padrão: {e}")
            row = None
        self.config = ConfiguracaoSistema.from_row(row)
        return self.config

    def definir_fiado_habilitado(self, habilitado: bool) -> ConfiguracaoSistema:
        nova = ConfiguracaoSistema(fiado_habilitado=bool(habilitado))
        self.db.upsert(TABELA, nova.to_row(), on_conflict="id")
        self.config = nova
        logger.info(f"Venda no fiado {'habilitada' if habilitado else 'desabilitada'}")
        return self.config

    @property
    def fiado_habilitado(self) -> bool:
        return self.config.fiado_habilitado
