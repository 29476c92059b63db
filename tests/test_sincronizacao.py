import os
import tempfile
import threading
import unittest
from unittest.mock import MagicMock

from google.api_core.exceptions import ServiceUnavailable

from edutrocado.core import local
from edutrocado.core.sincronizacao import PersistenciaAdiada, RegistoSessoes, SessaoProfessor
from edutrocado.dominio.estado import adicionar_turma

CALENDARIO = {'yearStart': '2024-09-02', 'yearEnd': '2024-09-20', 'holidays': [], 'terms': []}


def _guardado():
    turma = {'id': 't1', 'name': '10ºA', 'students': [], 'lessons': [], 'assessments': [],
             'schedule': [{'dayOfWeek': 1, 'startTime': '08:30', 'duration': 50}]}
    return {'classes': [turma], 'config': {'calendar': CALENDARIO}}


class TestPersistenciaAdiada(unittest.TestCase):

    def test_rajada_resulta_numa_so_gravacao(self):
        gravar = MagicMock()
        persistencia = PersistenciaAdiada(gravar, atraso=60)
        for i in range(5):
            persistencia.agendar({'v': i})

        self.assertTrue(persistencia.tem_pendente)
        persistencia.descarregar()

        gravar.assert_called_once_with({'v': 4})
        self.assertFalse(persistencia.tem_pendente)

    def test_gravacao_depois_do_atraso(self):
        gravado = threading.Event()
        persistencia = PersistenciaAdiada(lambda estado: gravado.set(), atraso=0.01)
        persistencia.agendar({'v': 1})
        self.assertTrue(gravado.wait(timeout=5))

    def test_cancelar(self):
        gravar = MagicMock()
        persistencia = PersistenciaAdiada(gravar, atraso=60)
        persistencia.agendar({'v': 1})
        persistencia.cancelar()
        persistencia.descarregar()
        gravar.assert_not_called()


class TestSessaoProfessor(unittest.TestCase):

    def _sessao(self, ler=None, gravar=None):
        return SessaoProfessor('prof', atraso=60,
                               ler_cloud=ler or MagicMock(return_value=None),
                               gravar_cloud=gravar or MagicMock())

    def test_carregar_da_cloud_regenera_aulas(self):
        sessao = self._sessao(ler=MagicMock(return_value=_guardado()))
        estado = sessao.carregar()

        self.assertEqual(sessao.status, 'synced')
        self.assertEqual(estado['config']['userName'], 'prof')
        self.assertEqual(len(estado['classes'][0]['lessons']), 3)
        self.assertFalse(sessao.historico.pode_desfazer)

    def test_cloud_indisponivel_usa_dados_locais(self):
        sessao = self._sessao(ler=MagicMock(side_effect=ServiceUnavailable("offline")))
        estado = sessao.carregar(local=_guardado())

        self.assertEqual(sessao.status, 'local')
        self.assertEqual(estado['classes'][0]['id'], 't1')

    def test_calendario_invalido_nao_impede_carregamento(self):
        guardado = {**_guardado(), 'config': {'calendar': {'yearStart': 'lixo', 'yearEnd': '2025-06-30'}}}
        sessao = self._sessao(ler=MagicMock(return_value=guardado))
        estado = sessao.carregar()
        self.assertEqual(estado['classes'][0]['lessons'], [])

    def test_aplicar_agenda_gravacao_e_permite_desfazer(self):
        gravar = MagicMock()
        sessao = self._sessao(gravar=gravar)
        sessao.carregar()

        sessao.aplicar(adicionar_turma, '11ºB')
        self.assertEqual(len(sessao.estado['classes']), 1)
        self.assertTrue(sessao.persistencia.tem_pendente)

        sessao.desfazer()
        self.assertEqual(sessao.estado['classes'], [])
        sessao.persistencia.descarregar()

        gravar.assert_called_once()
        self.assertEqual(gravar.call_args[0][1]['classes'], [])
        self.assertEqual(sessao.status, 'synced')

    def test_falha_na_gravacao_nao_reverte_estado(self):
        sessao = self._sessao(gravar=MagicMock(side_effect=ServiceUnavailable("offline")))
        sessao.carregar()
        sessao.aplicar(adicionar_turma, '11ºB')
        sessao.persistencia.descarregar()

        self.assertEqual(sessao.status, 'error')
        self.assertEqual(len(sessao.estado['classes']), 1)

    def test_falha_inesperada_fica_local(self):
        sessao = self._sessao(gravar=MagicMock(side_effect=RuntimeError("sem credenciais")))
        sessao.carregar()
        sessao.aplicar(adicionar_turma, '11ºB')
        sessao.persistencia.descarregar()
        self.assertEqual(sessao.status, 'local')


class TestRegistoSessoes(unittest.TestCase):

    def test_uma_sessao_por_utilizador_e_gravacao_ao_encerrar(self):
        gravar = MagicMock()
        registo = RegistoSessoes(lambda user_id: SessaoProfessor(
            user_id, atraso=60, ler_cloud=MagicMock(return_value=None), gravar_cloud=gravar))

        sessao = registo.obter('prof')
        self.assertIs(registo.obter('prof'), sessao)
        self.assertIsNot(registo.obter('outro'), sessao)

        sessao.aplicar(adicionar_turma, '10ºA')
        registo.encerrar('prof')

        gravar.assert_called_once()
        self.assertIsNot(registo.obter('prof'), sessao)


class TestCopiaLocal(unittest.TestCase):

    def setUp(self):
        self._pasta = tempfile.TemporaryDirectory()
        self.pasta = self._pasta.name

    def tearDown(self):
        self._pasta.cleanup()

    def _registo(self, ler, gravar):
        return RegistoSessoes(lambda user_id: SessaoProfessor(
            user_id, atraso=60, ler_cloud=ler, gravar_cloud=gravar,
            ler_local=lambda uid: local.obter_dados(self.pasta, uid),
            gravar_local=lambda uid, estado: local.guardar_dados(self.pasta, uid, estado)))

    def test_cloud_em_baixo_dados_sobrevivem_ao_logout(self):
        offline = MagicMock(side_effect=ServiceUnavailable("offline"))
        registo = self._registo(ler=offline, gravar=offline)

        registo.obter('prof').aplicar(adicionar_turma, '10ºA')
        registo.encerrar('prof')

        sessao = registo.obter('prof')
        self.assertEqual(sessao.status, 'local')
        self.assertEqual([t['name'] for t in sessao.estado['classes']], ['10ºA'])

    def test_cloud_vazia_recebe_dados_locais(self):
        local.guardar_dados(self.pasta, 'prof', _guardado())
        gravar = MagicMock()
        registo = self._registo(ler=MagicMock(return_value=None), gravar=gravar)

        sessao = registo.obter('prof')
        self.assertEqual(sessao.estado['classes'][0]['id'], 't1')
        self.assertTrue(sessao.persistencia.tem_pendente)

        sessao.persistencia.descarregar()
        self.assertEqual(gravar.call_args[0][1]['classes'][0]['id'], 't1')
        self.assertEqual(sessao.status, 'synced')

    def test_nome_de_utilizador_nao_sai_da_pasta(self):
        ficheiro = local.caminho(self.pasta, '../../etc/passwd')
        self.assertEqual(os.path.dirname(ficheiro), self.pasta)

    def test_ficheiro_corrompido_e_ignorado(self):
        with open(local.caminho(self.pasta, 'prof'), 'w', encoding='utf-8') as f:
            f.write('{nao e json')
        self.assertIsNone(local.obter_dados(self.pasta, 'prof'))


class TestSincronizacaoManual(unittest.TestCase):

    def test_cloud_vazia_sem_dados_locais_fica_sincronizada(self):
        sessao = SessaoProfessor('prof', atraso=60, ler_cloud=MagicMock(return_value=None),
                                 gravar_cloud=MagicMock())
        sessao.carregar()
        self.assertEqual(sessao.status, 'synced')
        self.assertFalse(sessao.persistencia.tem_pendente)

    def test_envia_estado_atual_sem_nada_pendente(self):
        gravar = MagicMock()
        sessao = SessaoProfessor('prof', atraso=60, ler_cloud=MagicMock(return_value=_guardado()),
                                 gravar_cloud=gravar)
        sessao.carregar()

        self.assertEqual(sessao.sincronizar_agora(), 'synced')
        gravar.assert_called_once()
        self.assertEqual(gravar.call_args[0][1]['classes'][0]['id'], 't1')
        self.assertIsNotNone(sessao.ultima_sync)

    def test_falha_reportada_como_erro(self):
        sessao = SessaoProfessor('prof', atraso=60, ler_cloud=MagicMock(return_value=None),
                                 gravar_cloud=MagicMock(side_effect=ServiceUnavailable("offline")))
        sessao.carregar()
        self.assertEqual(sessao.sincronizar_agora(), 'error')

    def test_sem_copia_local_sessao_nao_sincronizada_fica_aberta(self):
        offline = MagicMock(side_effect=ServiceUnavailable("offline"))
        registo = RegistoSessoes(lambda user_id: SessaoProfessor(
            user_id, atraso=60, ler_cloud=offline, gravar_cloud=offline))

        sessao = registo.obter('prof')
        sessao.aplicar(adicionar_turma, '10ºA')
        registo.encerrar('prof')

        self.assertIs(registo.obter('prof'), sessao)


if __name__ == '__main__':
    unittest.main()
