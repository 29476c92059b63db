import itertools
import unittest
from datetime import date

from edutrocado.dominio import estado as e
from edutrocado.dominio.estado import EntidadeNaoEncontrada, Historico

CALENDARIO = {'yearStart': '2024-09-02', 'yearEnd': '2024-09-20', 'holidays': [], 'terms': []}


def _ids():
    contador = itertools.count(1)
    return lambda: f'id{next(contador)}'


def _estado_com_turma():
    estado = e.atualizar_calendario(e.estado_inicial(date(2024, 9, 1)), CALENDARIO)
    return e.adicionar_turma(estado, '10ºA', gerar_id=lambda: 't1')


class TestTransicoes(unittest.TestCase):

    def test_estado_inicial_tem_calendario_padrao(self):
        estado = e.estado_inicial(date(2025, 3, 1))
        self.assertEqual(estado['classes'], [])
        self.assertEqual(estado['config']['calendar']['yearStart'], '2024-09-08')
        self.assertEqual(estado['config']['calendar']['yearEnd'], '2025-06-30')

    def test_transicoes_nao_alteram_o_estado_anterior(self):
        antes = _estado_com_turma()
        depois = e.renomear_turma(antes, 't1', '10ºB')
        self.assertEqual(e.obter_turma(antes, 't1')['name'], '10ºA')
        self.assertEqual(e.obter_turma(depois, 't1')['name'], '10ºB')

    def test_turma_inexistente(self):
        with self.assertRaises(EntidadeNaoEncontrada):
            e.remover_turma(_estado_com_turma(), 'nao-existe')

    def test_definir_horario_gera_aulas(self):
        estado = e.definir_horario(_estado_com_turma(), 't1',
                                   [{'dayOfWeek': 1, 'startTime': '08:30', 'duration': 50}])
        self.assertEqual(len(e.obter_turma(estado, 't1')['lessons']), 3)

    def test_guardar_aluno_cria_e_atualiza(self):
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        estado = e.adicionar_avaliacao(estado, 't1', 'Teste 1', '2024-10-01', gerar_id=lambda: 'av1')
        estado = e.lancar_nota(estado, 't1', 'a1', 'av1', '15')
        estado = e.guardar_aluno(estado, 't1', {'id': 'a1', 'notes': 'Delegada'})

        aluno = e.obter_aluno(e.obter_turma(estado, 't1'), 'a1')
        self.assertEqual(aluno['name'], 'Ana')
        self.assertEqual(aluno['notes'], 'Delegada')
        self.assertEqual(aluno['grades'], {'av1': 15.0})
        self.assertEqual(aluno['measures'], [])

    def test_editar_aula_gerada_torna_a_manual(self):
        estado = e.definir_horario(_estado_com_turma(), 't1',
                                   [{'dayOfWeek': 1, 'startTime': '08:30', 'duration': 50}])
        aula = e.obter_turma(estado, 't1')['lessons'][0]
        dados = {k: v for k, v in aula.items() if k != 'isGenerated'}

        estado = e.guardar_aula(estado, 't1', {**dados, 'description': 'Equações'})
        estado = e.gerar_aulas_turma(estado, 't1')

        aulas = e.obter_turma(estado, 't1')['lessons']
        editada = [a for a in aulas if a['id'] == aula['id']]
        self.assertEqual(len(editada), 1)
        self.assertNotIn('isGenerated', editada[0])
        self.assertEqual(editada[0]['description'], 'Equações')
        self.assertEqual(len(aulas), 3)

    def test_aula_manual_recebe_registos_de_todos_os_alunos(self):
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        estado = e.guardar_aula(estado, 't1', {'date': '2024-09-04'}, gerar_id=lambda: 'l1')
        aula = e.obter_turma(estado, 't1')['lessons'][0]
        self.assertEqual(aula['time'], '08:00')
        self.assertEqual(aula['duration'], 50)
        self.assertEqual([r['studentId'] for r in aula['records']], ['a1'])

    def test_lancar_nota_vazia_apaga(self):
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        estado = e.adicionar_avaliacao(estado, 't1', 'Teste 1', '2024-10-01', gerar_id=lambda: 'av1')
        estado = e.lancar_nota(estado, 't1', 'a1', 'av1', 150)
        self.assertEqual(e.obter_turma(estado, 't1')['students'][0]['grades'], {'av1': 15.0})

        estado = e.lancar_nota(estado, 't1', 'a1', 'av1', '')
        self.assertEqual(e.obter_turma(estado, 't1')['students'][0]['grades'], {})

    def test_nota_de_avaliacao_inexistente(self):
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        with self.assertRaises(EntidadeNaoEncontrada):
            e.lancar_nota(estado, 't1', 'a1', 'nao-existe', 12)

    def test_adicionar_turma_com_duracao(self):
        estado = e.adicionar_turma(e.estado_inicial(), '12ºC', gerar_id=lambda: 't2', duracao=90)
        self.assertEqual(e.obter_turma(estado, 't2')['defaultDuration'], 90)
        self.assertEqual(e.obter_turma(estado, 't2')['name'], '12ºC')

    def test_remover_avaliacao_apaga_notas(self):
        ids = _ids()
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        estado = e.adicionar_avaliacao(estado, 't1', 'Teste 1', '2024-10-01', gerar_id=ids)
        estado = e.lancar_nota(estado, 't1', 'a1', 'id1', 12)
        estado = e.remover_avaliacao(estado, 't1', 'id1')

        turma = e.obter_turma(estado, 't1')
        self.assertEqual(turma['assessments'], [])
        self.assertEqual(turma['students'][0]['grades'], {})

    def test_medidas(self):
        estado = e.guardar_aluno(_estado_com_turma(), 't1', {'name': 'Ana'}, gerar_id=lambda: 'a1')
        estado = e.guardar_medida(estado, 't1', 'a1',
                                  {'date': '2024-10-01', 'type': 'Universal', 'description': 'Tutoria'},
                                  gerar_id=lambda: 'm1')
        estado = e.guardar_medida(estado, 't1', 'a1', {'id': 'm1', 'type': 'Seletiva'})
        medidas = e.obter_turma(estado, 't1')['students'][0]['measures']
        self.assertEqual(medidas, [{'date': '2024-10-01', 'type': 'Seletiva',
                                    'description': 'Tutoria', 'id': 'm1'}])

        estado = e.remover_medida(estado, 't1', 'a1', 'm1')
        self.assertEqual(e.obter_turma(estado, 't1')['students'][0]['measures'], [])

    def test_substituir_estado_mantem_password_local(self):
        atual = e.atualizar_config(_estado_com_turma(), appPassword='hash', userName='prof')
        novo = e.substituir_estado(atual, {'classes': [], 'config': {'appPassword': 'outro'}})
        self.assertEqual(novo['config']['appPassword'], 'hash')
        self.assertEqual(novo['config']['userName'], 'prof')
        self.assertNotIn('appPassword', e.estado_publico(novo)['config'])

    def test_sincronizar_aulas_funde_calendario(self):
        estado = {'classes': [], 'config': {'calendar': {'yearStart': '2024-09-02', 'yearEnd': '2025-06-30'}}}
        sincronizado = e.sincronizar_aulas(estado, hoje=date(2024, 10, 1))
        calendario = sincronizado['config']['calendar']
        self.assertEqual(calendario['yearStart'], '2024-09-02')
        self.assertEqual(len(calendario['terms']), 3)


class TestHistorico(unittest.TestCase):

    def test_desfazer_e_refazer(self):
        historico = Historico({'v': 0})
        historico.registar({'v': 1})
        historico.registar({'v': 2})

        self.assertEqual(historico.desfazer(), {'v': 1})
        self.assertEqual(historico.desfazer(), {'v': 0})
        self.assertIsNone(historico.desfazer())
        self.assertEqual(historico.refazer(), {'v': 1})
        self.assertEqual(historico.atual, {'v': 1})
        self.assertTrue(historico.pode_refazer)

    def test_nova_alteracao_limpa_o_futuro(self):
        historico = Historico({'v': 0})
        historico.registar({'v': 1})
        historico.desfazer()
        historico.registar({'v': 5})
        self.assertFalse(historico.pode_refazer)
        self.assertIsNone(historico.refazer())

    def test_estado_igual_nao_cria_entrada(self):
        historico = Historico({'v': 0})
        historico.registar({'v': 0})
        self.assertFalse(historico.pode_desfazer)

    def test_capacidade_limitada(self):
        historico = Historico({'v': 0}, capacidade=3)
        for i in range(1, 10):
            historico.registar({'v': i})
        self.assertEqual(len(historico.passado), 3)
        self.assertEqual(historico.passado[0], {'v': 6})

    def test_substituir_limpa_historico(self):
        historico = Historico({'v': 0})
        historico.registar({'v': 1})
        historico.substituir({'v': 9})
        self.assertFalse(historico.pode_desfazer)
        self.assertEqual(historico.atual, {'v': 9})


if __name__ == '__main__':
    unittest.main()
