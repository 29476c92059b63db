from edutrocado.dominio.assiduidade import evolucao_aluno, ocorrencias_aluno, resumo_assiduidade


def _registo(aluno_id, status='Presente', participation=0, tpc=0, occurrence=''):
    return {'studentId': aluno_id, 'status': status, 'participation': participation,
            'tpc': tpc, 'occurrence': occurrence}


AULAS = [
    {'id': 'l1', 'date': '2024-09-02', 'records': [
        _registo('a1', 'Presente', 4, 5),
        _registo('a2', 'Ausente', 0, 0, 'Sem justificação'),
    ]},
    {'id': 'l2', 'date': '2024-10-07', 'records': [
        _registo('a1', 'Atraso', 2, 3, 'Chegou 10 min depois'),
        _registo('a2', 'Presente', 3, 1),
    ]},
]


def test_resumo_da_turma():
    resumo = resumo_assiduidade(AULAS)

    assert resumo['totalRegistos'] == 4
    assert resumo['totalAulas'] == 2
    assert resumo['taxaPresenca'] == 50.0
    assert resumo['mediaParticipacao'] == 9 / 4
    assert resumo['mediaTpc'] == 9 / 4
    assert resumo['contagem'] == {'Presente': 2, 'Ausente': 1, 'Atraso': 1}


def test_resumo_de_um_aluno():
    resumo = resumo_assiduidade(AULAS, 'a1')
    assert resumo['totalRegistos'] == 2
    assert resumo['taxaPresenca'] == 50.0
    assert resumo['mediaParticipacao'] == 3


def test_resumo_filtrado_por_intervalo():
    resumo = resumo_assiduidade(AULAS, inicio='2024-10-01', fim='2024-12-31')
    assert resumo['totalAulas'] == 1
    assert resumo['contagem']['Atraso'] == 1


def test_sem_registos_devolve_zeros():
    resumo = resumo_assiduidade([])
    assert resumo['taxaPresenca'] == 0.0
    assert resumo['mediaParticipacao'] == 0.0
    assert resumo['totalRegistos'] == 0


def test_ocorrencias_e_evolucao_do_aluno():
    ocorrencias = ocorrencias_aluno(list(reversed(AULAS)), 'a1')
    assert ocorrencias == [{'date': '2024-10-07', 'text': 'Chegou 10 min depois', 'status': 'Atraso'}]

    evolucao = evolucao_aluno(list(reversed(AULAS)), 'a1')
    assert [p['date'] for p in evolucao] == ['2024-09-02', '2024-10-07']
    assert evolucao[0]['participacao'] == 4
