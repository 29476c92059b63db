"""
Sessão do professor e sincronização com a cloud.

A sessão guarda o estado em memória (com histórico de desfazer/refazer) e
agenda a gravação no Firestore com atraso fixo: uma rajada de alterações
resulta numa só escrita. Falhas de rede nunca revertem o estado; apenas
mudam o indicador de sincronização para 'local' ou 'error'.
Cada alteração é também gravada de imediato na cópia local.
"""

import os
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from flask import current_app
from google.api_core.exceptions import GoogleAPICallError

from edutrocado.core import database
from edutrocado.core import local as armazenamento_local
from edutrocado.core.constants import UTILIZADOR_PADRAO
from edutrocado.core.logger import get_logger
from edutrocado.dominio.calendario import InvalidCalendarError
from edutrocado.dominio.estado import Historico, estado_inicial, sincronizar_aulas

logger = get_logger(__name__)


class PersistenciaAdiada:
    """
    Debounce de gravações: cada agendar() substitui a gravação pendente.
    Nunca há duas gravações em curso ao mesmo tempo.
    """

    def __init__(self, gravar: Callable[[Dict], None], atraso: float = 1.0):
        self.gravar = gravar
        self.atraso = atraso
        self._timer: Optional[threading.Timer] = None
        self._pendente: Optional[Dict] = None
        self._lock = threading.Lock()
        self._lock_escrita = threading.Lock()

    @property
    def tem_pendente(self) -> bool:
        return self._pendente is not None

    def agendar(self, estado: Dict) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pendente = estado
            self._timer = threading.Timer(self.atraso, self._executar)
            self._timer.daemon = True
            self._timer.start()

    def cancelar(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = None
            self._pendente = None

    def descarregar(self) -> None:
        """Grava já o que estiver pendente (logout, testes, shutdown)."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        self._executar()

    def _executar(self) -> None:
        with self._lock:
            estado = self._pendente
            self._pendente = None
            self._timer = None
        if estado is None:
            return
        with self._lock_escrita:
            self.gravar(estado)


class SessaoProfessor:
    """Estado em memória de um utilizador + histórico + estado da sincronização."""

    def __init__(self, user_id: str = UTILIZADOR_PADRAO, estado: Optional[Dict] = None,
                 capacidade: int = 20, atraso: float = 1.0,
                 ler_cloud: Callable[[str], Optional[Dict]] = database.obter_dados,
                 gravar_cloud: Callable[[str, Dict], None] = database.guardar_dados,
                 ler_local: Optional[Callable[[str], Optional[Dict]]] = None,
                 gravar_local: Optional[Callable[[str, Dict], None]] = None):
        self.user_id = user_id
        self.historico = Historico(estado or estado_inicial(), capacidade)
        self.status = 'local'
        self.ultima_sync: Optional[str] = None
        self.ler_cloud = ler_cloud
        self.gravar_cloud = gravar_cloud
        self.ler_local = ler_local
        self.gravar_local = gravar_local
        self.persistencia = PersistenciaAdiada(self._gravar, atraso)
        self._lock = threading.RLock()

    @property
    def estado(self) -> Dict:
        return self.historico.atual

    def dados_locais(self) -> Optional[Dict]:
        if self.ler_local is None:
            return None
        return self.ler_local(self.user_id)

    def carregar(self, local: Optional[Dict] = None) -> Dict:
        """
        Junta o estado local com o da cloud (se existir) e regenera as aulas.
        Sem cloud, segue com os dados locais. Com a cloud vazia, os dados
        locais são enviados.
        """
        guardado = local
        enviar = False
        try:
            cloud = self.ler_cloud(self.user_id)
            if cloud:
                config_local = (local or {}).get('config') or {}
                guardado = {
                    **cloud,
                    'config': {**config_local, **(cloud.get('config') or {}), 'userName': self.user_id},
                }
                self.status = 'synced'
            elif local:
                enviar = True
            else:
                self.status = 'synced'
        except Exception as e:
            logger.warning(f"Cloud indisponível para {self.user_id}, a usar dados locais ({e}).")
            self.status = 'local'

        guardado = guardado or estado_inicial()
        try:
            estado = sincronizar_aulas(guardado)
        except InvalidCalendarError as e:
            # Os dados carregam na mesma; o erro volta a surgir ao gerar aulas
            logger.error(f"Calendário inválido para {self.user_id}: {e}")
            estado = guardado

        with self._lock:
            estado = self.historico.substituir(estado)
        self._guardar_local(estado)
        if enviar:
            self.persistencia.agendar(estado)
        return estado

    def aplicar(self, transicao: Callable[..., Dict], *args, **kwargs) -> Dict:
        """Aplica uma transição pura ao estado atual e agenda a sincronização."""
        with self._lock:
            novo = transicao(self.historico.atual, *args, **kwargs)
            self.historico.registar(novo)
        self._guardar(novo)
        return novo

    def restaurar(self, estado: Dict) -> Dict:
        """Substitui o estado inteiro (backup) limpando o histórico."""
        with self._lock:
            novo = self.historico.substituir(sincronizar_aulas(estado))
        self._guardar(novo)
        return novo

    def desfazer(self) -> Optional[Dict]:
        with self._lock:
            estado = self.historico.desfazer()
        if estado is not None:
            self._guardar(estado)
        return estado

    def refazer(self) -> Optional[Dict]:
        with self._lock:
            estado = self.historico.refazer()
        if estado is not None:
            self._guardar(estado)
        return estado

    def sincronizar_agora(self) -> str:
        """Sincronização manual: envia já o estado atual e devolve o resultado."""
        if not self.persistencia.tem_pendente:
            self.persistencia.agendar(self.estado)
        self.persistencia.descarregar()
        return self.status

    def _guardar(self, estado: Dict) -> None:
        self._guardar_local(estado)
        self.persistencia.agendar(estado)

    def _guardar_local(self, estado: Dict) -> None:
        if self.gravar_local is None:
            return
        try:
            self.gravar_local(self.user_id, estado)
        except OSError as e:
            logger.error(f"Erro ao gravar a cópia local de {self.user_id}: {e}", exc_info=True)

    def _gravar(self, estado: Dict) -> None:
        self.status = 'syncing'
        try:
            self.gravar_cloud(self.user_id, estado)
            self.status = 'synced'
            self.ultima_sync = datetime.now(timezone.utc).isoformat()
        except GoogleAPICallError as e:
            logger.error(f"Erro na sincronização Cloud: {e}", exc_info=True)
            self.status = 'error'
        except Exception as e:
            logger.warning(f"Sincronização indisponível, a manter dados locais ({e}).")
            self.status = 'local'


class RegistoSessoes:
    """Sessões abertas por utilizador (guardado em app.extensions)."""

    def __init__(self, fabrica: Callable[[str], SessaoProfessor]):
        self.fabrica = fabrica
        self._sessoes: Dict[str, SessaoProfessor] = {}
        self._lock = threading.Lock()

    def obter(self, user_id: str) -> SessaoProfessor:
        with self._lock:
            sessao = self._sessoes.get(user_id)
            if sessao is None:
                sessao = self.fabrica(user_id)
                sessao.carregar(local=sessao.dados_locais())
                self._sessoes[user_id] = sessao
            return sessao

    def encerrar(self, user_id: str) -> None:
        """
        Grava o pendente e fecha a sessão. Sem cópia local e sem a cloud
        atualizada, a sessão fica aberta: é a única cópia dos dados.
        """
        with self._lock:
            sessao = self._sessoes.get(user_id)
        if sessao is None:
            return
        sessao.persistencia.descarregar()
        if sessao.status != 'synced' and sessao.gravar_local is None:
            logger.warning(f"Sessão de {user_id} mantida em memória: dados por sincronizar.")
            return
        with self._lock:
            if self._sessoes.get(user_id) is sessao:
                del self._sessoes[user_id]


EXTENSAO_SESSOES = 'edutrocado_sessoes'


def criar_registo(app) -> RegistoSessoes:
    """
    As gravações correm numa thread do Timer, fora do pedido HTTP:
    o contexto da aplicação é reaberto à volta de cada chamada à cloud.
    """
    pasta = app.config.get('LOCAL_DATA_DIR') or os.path.join(app.instance_path, 'dados')

    def ler(user_id: str) -> Optional[Dict]:
        with app.app_context():
            return database.obter_dados(user_id)

    def gravar(user_id: str, estado: Dict) -> None:
        with app.app_context():
            database.guardar_dados(user_id, estado)

    def ler_local(user_id: str) -> Optional[Dict]:
        return armazenamento_local.obter_dados(pasta, user_id)

    def gravar_local(user_id: str, estado: Dict) -> None:
        armazenamento_local.guardar_dados(pasta, user_id, estado)

    def fabrica(user_id: str) -> SessaoProfessor:
        return SessaoProfessor(
            user_id,
            capacidade=app.config.get('MAX_HISTORY', 20),
            atraso=app.config.get('SYNC_DEBOUNCE_SECONDS', 1.0),
            ler_cloud=ler,
            gravar_cloud=gravar,
            ler_local=ler_local,
            gravar_local=gravar_local,
        )
    return RegistoSessoes(fabrica)


def obter_sessao(user_id: str) -> SessaoProfessor:
    return current_app.extensions[EXTENSAO_SESSOES].obter(user_id)


def encerrar_sessao(user_id: str) -> None:
    current_app.extensions[EXTENSAO_SESSOES].encerrar(user_id)
