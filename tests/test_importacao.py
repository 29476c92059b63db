import itertools

import pytest
from pydantic import ValidationError

from edutrocado.dominio.calendario import InvalidCalendarError
from edutrocado.dominio.importacao import (
    calendario_de_resposta,
    horario_de_resposta,
    mesclar_alunos,
    mesclar_medidas,
    mesclar_notas,
)
from edutrocado.dominio.modelos import (
    CalendarioEscolar,
    Horario,
    RespostaAlunos,
    RespostaHorario,
    RespostaMedidas,
    RespostaNotas,
)


def _turma():
    return {
        'id': 't1',
        'students': [
            {'id': 'a1', 'name': 'Ana Sofia Martins', 'grades': {}, 'measures': []},
            {'id': 'a2', 'name': 'Bruno Costa', 'grades': {'x': 10}, 'measures': []},
        ],
        'assessments': [],
        'lessons': [],
        'schedule': [],
    }


def _ids():
    contador = itertools.count(1)
    return lambda: f'id{next(contador)}'


def test_mesclar_alunos_create_acrescenta_todos():
    turma = mesclar_alunos(_turma(), [{'id': 'n1', 'name': 'Bruno Costa'}], 'create')
    assert len(turma['students']) == 3


def test_mesclar_alunos_update_mantem_id_e_notas():
    novos = [
        {'id': 'n1', 'name': 'BRUNO COSTA', 'photo': 'https://foto'},
        {'id': 'n2', 'name': 'Carla Dias'},
    ]
    turma = mesclar_alunos(_turma(), novos, 'update')

    bruno = turma['students'][1]
    assert bruno['id'] == 'a2'
    assert bruno['grades'] == {'x': 10}
    assert bruno['photo'] == 'https://foto'
    assert turma['students'][2]['name'] == 'Carla Dias'


def test_mesclar_notas_cria_avaliacao_e_associa_por_nome():
    resposta = RespostaNotas.model_validate({'assessments': [{
        'name': 'Teste 1', 'date': '2024-10-10',
        'grades': [
            {'studentName': 'ANA MARTINS', 'grade': 155},
            {'studentName': 'Bruno Costa', 'grade': 12.5},
            {'studentName': 'Desconhecido Total', 'grade': 10},
        ],
    }]})
    turma = mesclar_notas(_turma(), resposta, gerar_id=_ids())

    assert turma['assessments'] == [{'id': 'id1', 'name': 'Teste 1', 'date': '2024-10-10'}]
    assert turma['students'][0]['grades'] == {'id1': 15.5}
    assert turma['students'][1]['grades'] == {'x': 10, 'id1': 12.5}


def test_mesclar_medidas_com_ficheiro_de_origem():
    resposta = RespostaMedidas.model_validate({'results': [
        {'studentName': 'Ana Martins', 'measures': [
            {'date': '2024-10-01', 'type': 'Universal', 'description': 'Apoio tutorial'},
        ]},
        {'studentName': 'Ninguém', 'measures': [
            {'date': '2024-10-01', 'type': 'Seletiva', 'description': 'x'},
        ]},
    ]})
    turma = mesclar_medidas(_turma(), resposta, gerar_id=_ids(), fonte='relatorio.pdf')

    assert turma['students'][0]['measures'] == [{
        'date': '2024-10-01', 'type': 'Universal', 'description': 'Apoio tutorial',
        'id': 'id1', 'sourceFile': 'relatorio.pdf',
    }]
    assert turma['students'][1]['measures'] == []


def test_horario_calcula_duracao_e_normaliza_horas():
    resposta = RespostaHorario.model_validate({'schedule': [
        {'dayOfWeek': 1, 'startTime': '9:00', 'endTime': '10:30'},
        {'dayOfWeek': 3, 'startTime': '14:00', 'endTime': '14:00'},
    ]})
    horario = horario_de_resposta(resposta)

    assert horario[0] == {'dayOfWeek': 1, 'startTime': '09:00', 'endTime': '10:30', 'duration': 90}
    assert horario[1]['duration'] == 50


def test_calendario_de_resposta_valida_limites():
    valido = CalendarioEscolar.model_validate({'yearStart': '2024-09-12', 'yearEnd': '2025-06-20'})
    assert calendario_de_resposta(valido)['holidays'] == []

    invertido = CalendarioEscolar.model_validate({'yearStart': '2025-06-20', 'yearEnd': '2024-09-12'})
    with pytest.raises(InvalidCalendarError):
        calendario_de_resposta(invertido)


def test_numero_de_aluno_numerico_vira_texto():
    resposta = RespostaAlunos.model_validate({'students': [{'name': 'Ana', 'studentNumber': 12345}]})
    assert resposta.students[0].studentNumber == '12345'
    assert resposta.students[0].box_2d == []


def test_tipo_de_medida_fora_da_lista_e_rejeitado():
    with pytest.raises(ValidationError):
        RespostaMedidas.model_validate({'results': [
            {'studentName': 'Ana', 'measures': [
                {'date': '2024-10-01', 'type': 'Inventada', 'description': 'x'},
            ]},
        ]})


def test_horario_com_tempos_repetidos_e_rejeitado():
    with pytest.raises(ValidationError):
        Horario.model_validate({'schedule': [
            {'dayOfWeek': 1, 'startTime': '09:00', 'duration': 50},
            {'dayOfWeek': 1, 'startTime': '09:00', 'duration': 90},
        ]})
