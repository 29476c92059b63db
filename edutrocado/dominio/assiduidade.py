"""
Estatísticas de assiduidade, participação e TPC.
"""

from typing import Dict, List, Optional

from edutrocado.core.constants import ESTADOS_PRESENCA, PRESENTE
from edutrocado.dominio.calendario import dentro_intervalo


def _registos(aulas: List[Dict], aluno_id: Optional[str], inicio: str, fim: str):
    for aula in aulas:
        if not dentro_intervalo(aula.get('date', ''), inicio, fim):
            continue
        for registo in aula.get('records') or []:
            if aluno_id is None or registo.get('studentId') == aluno_id:
                yield aula, registo


def resumo_assiduidade(aulas: List[Dict], aluno_id: Optional[str] = None,
                       inicio: str = '', fim: str = '') -> Dict:
    """
    Médias de participação e TPC e taxa de presença (%).

    Cada indicador é calculado sobre o total de registos, sem ponderação.
    Sem registos devolve zeros.
    """
    pares = list(_registos(aulas, aluno_id, inicio or '', fim or ''))
    contagem = {estado: 0 for estado in ESTADOS_PRESENCA}
    total = len(pares)

    if not total:
        return {
            'mediaParticipacao': 0.0,
            'mediaTpc': 0.0,
            'taxaPresenca': 0.0,
            'totalRegistos': 0,
            'totalAulas': 0,
            'contagem': contagem,
        }

    for _, registo in pares:
        estado = registo.get('status')
        if estado in contagem:
            contagem[estado] += 1

    return {
        'mediaParticipacao': sum(r.get('participation', 0) for _, r in pares) / total,
        'mediaTpc': sum(r.get('tpc', 0) for _, r in pares) / total,
        'taxaPresenca': contagem[PRESENTE] / total * 100,
        'totalRegistos': total,
        'totalAulas': len({id(a) for a, _ in pares}),
        'contagem': contagem,
    }


def ocorrencias_aluno(aulas: List[Dict], aluno_id: str) -> List[Dict]:
    """Notas de ocorrência do aluno, por ordem cronológica."""
    ocorrencias = [
        {'date': aula.get('date'), 'text': registo['occurrence'], 'status': registo.get('status')}
        for aula, registo in _registos(aulas, aluno_id, '', '')
        if registo.get('occurrence')
    ]
    return sorted(ocorrencias, key=lambda o: o['date'] or '')


def evolucao_aluno(aulas: List[Dict], aluno_id: str) -> List[Dict]:
    """Participação e TPC por aula, para o gráfico do perfil."""
    pontos = [
        {'date': aula.get('date'), 'participacao': registo.get('participation') or 0,
         'tpc': registo.get('tpc') or 0}
        for aula, registo in _registos(aulas, aluno_id, '', '')
    ]
    return sorted(pontos, key=lambda p: p['date'] or '')
