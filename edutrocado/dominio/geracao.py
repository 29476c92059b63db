"""
Motor de geração de aulas a partir do horário semanal.

Percorre todos os dias do ano letivo, cruza o dia da semana com o horário
da turma, salta interrupções e preserva as aulas criadas/editadas à mão.
"""

import uuid
from datetime import timedelta
from typing import Callable, Dict, List

from edutrocado.core.constants import DESCRICAO_AULA_GERADA, DURACAO_PADRAO, PRESENTE
from edutrocado.dominio.calendario import em_feriado, limites_ano


def novo_id() -> str:
    return uuid.uuid4().hex


def dia_semana(d) -> int:
    """0=Domingo .. 6=Sábado (date.weekday() usa 0=Segunda)."""
    return (d.weekday() + 1) % 7


def registo_padrao(aluno_id: str) -> Dict:
    return {
        'studentId': aluno_id,
        'status': PRESENTE,
        'participation': 0,
        'tpc': 0,
        'occurrence': '',
    }


def horario_sem_repetidos(horario: List[Dict]) -> List[Dict]:
    """Um só tempo por (dia, hora de início); fica o primeiro."""
    vistos = set()
    unicos = []
    for entrada in horario:
        chave = (entrada.get('dayOfWeek'), entrada.get('startTime'))
        if chave not in vistos:
            vistos.add(chave)
            unicos.append(entrada)
    return unicos


def gerar_aulas(turma: Dict, calendario: Dict,
                gerar_id: Callable[[], str] = novo_id) -> Dict:
    """
    Devolve a turma com as aulas geradas refeitas.

    - Aulas manuais (isGenerated falso) ficam intactas e à frente.
    - Uma aula manual em (data, hora) impede a geração desse tempo.
    - Aulas geradas anteriormente com a mesma (data, hora) mantêm id e registos.

    Raises:
        InvalidCalendarError: limites do ano mal formados.
    """
    limites = limites_ano(calendario)
    if limites is None:
        return turma

    aulas = turma.get('lessons') or []
    manuais = [a for a in aulas if not a.get('isGenerated')]
    anteriores: Dict = {}
    for a in aulas:
        if a.get('isGenerated'):
            anteriores.setdefault((a.get('date'), a.get('time')), a)
    ocupados = {(a.get('date'), a.get('time')) for a in manuais}

    horario = turma.get('schedule') or []
    feriados = calendario.get('holidays') or []
    alunos = turma.get('students') or []
    geradas: List[Dict] = []

    if horario:
        por_dia: Dict[int, List[Dict]] = {}
        for entrada in horario:
            por_dia.setdefault(entrada.get('dayOfWeek'), []).append(entrada)

        atual, fim = limites
        while atual <= fim:
            tempos = por_dia.get(dia_semana(atual))
            data_iso = atual.isoformat()

            if tempos and not em_feriado(data_iso, feriados):
                for entrada in tempos:
                    chave = (data_iso, entrada.get('startTime'))
                    if chave in ocupados:
                        continue
                    ocupados.add(chave)

                    anterior = anteriores.get(chave)
                    if anterior is not None:
                        aula_id = anterior['id']
                        registos = anterior.get('records', [])
                    else:
                        aula_id = gerar_id()
                        registos = [registo_padrao(a['id']) for a in alunos]

                    geradas.append({
                        'id': aula_id,
                        'date': data_iso,
                        'time': entrada.get('startTime'),
                        'duration': entrada.get('duration') or DURACAO_PADRAO,
                        'description': DESCRICAO_AULA_GERADA,
                        'isGenerated': True,
                        'records': registos,
                    })
            atual += timedelta(days=1)

    return {**turma, 'lessons': manuais + geradas}


def ordenar_aulas(aulas: List[Dict], hoje: str, agora: str) -> Dict[str, List[Dict]]:
    """
    Separa aulas em próximas (crescente) e passadas (decrescente) para exibição.
    Aulas sem hora contam como 23:59.
    """
    def chave(a):
        return a.get('date', ''), a.get('time') or ''

    def momento(a):
        return a.get('date', ''), a.get('time') or '23:59'

    proximas = [a for a in aulas if momento(a) >= (hoje, agora)]
    passadas = [a for a in aulas if momento(a) < (hoje, agora)]
    return {
        'upcoming': sorted(proximas, key=chave),
        'past': sorted(passadas, key=chave, reverse=True),
    }
