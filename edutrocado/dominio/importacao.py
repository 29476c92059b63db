"""
Fusão dos dados extraídos por IA com a turma.

Funções puras: recebem a turma e a resposta já validada e devolvem a turma
nova. Nada aqui fala com a rede.
"""

from typing import Callable, Dict, List, Optional

from edutrocado.core.constants import DURACAO_PADRAO
from edutrocado.core.nomes import CorrespondenciaNomes, encontrar_aluno
from edutrocado.dominio.avaliacao import normalizar_nota
from edutrocado.dominio.calendario import limites_ano
from edutrocado.dominio.geracao import novo_id
from edutrocado.dominio.modelos import (
    CalendarioEscolar,
    RespostaHorario,
    RespostaMedidas,
    RespostaNotas,
)


def mesclar_alunos(turma: Dict, novos: List[Dict], modo: str = 'create') -> Dict:
    """
    modo 'create' acrescenta todos; 'update' atualiza quem já existe
    (mesmo nome, sem distinguir maiúsculas) e acrescenta os restantes.
    """
    alunos = list(turma.get('students') or [])

    if modo == 'update':
        for novo in novos:
            nome = (novo.get('name') or '').lower()
            idx = next((i for i, a in enumerate(alunos) if a.get('name', '').lower() == nome), None)
            if idx is None:
                alunos.append(novo)
            else:
                # O id existente mantém-se para não perder registos e notas
                alunos[idx] = {**alunos[idx], **novo, 'id': alunos[idx]['id']}
    else:
        alunos.extend(novos)

    return {**turma, 'students': alunos}


def mesclar_notas(turma: Dict, resposta: RespostaNotas,
                  criterio: Optional[CorrespondenciaNomes] = None,
                  gerar_id: Callable[[], str] = novo_id) -> Dict:
    """Cada avaliação extraída é nova; notas sem aluno correspondente são ignoradas."""
    avaliacoes = list(turma.get('assessments') or [])
    alunos = list(turma.get('students') or [])

    for extraida in resposta.assessments:
        avaliacao_id = gerar_id()
        avaliacoes.append({'id': avaliacao_id, 'name': extraida.name, 'date': extraida.date})

        for nota in extraida.grades:
            aluno = encontrar_aluno(nota.studentName, alunos, criterio)
            valor = normalizar_nota(nota.grade)
            if aluno is None or valor is None:
                continue
            atualizado = {**aluno, 'grades': {**(aluno.get('grades') or {}), avaliacao_id: valor}}
            alunos = [atualizado if a['id'] == aluno['id'] else a for a in alunos]

    return {**turma, 'assessments': avaliacoes, 'students': alunos}


def mesclar_medidas(turma: Dict, resposta: RespostaMedidas,
                    criterio: Optional[CorrespondenciaNomes] = None,
                    gerar_id: Callable[[], str] = novo_id,
                    fonte: Optional[str] = None) -> Dict:
    alunos = list(turma.get('students') or [])

    for resultado in resposta.results:
        aluno = encontrar_aluno(resultado.studentName, alunos, criterio)
        if aluno is None:
            continue
        novas = []
        for m in resultado.measures:
            medida = {**m.model_dump(), 'id': gerar_id()}
            if fonte:
                medida['sourceFile'] = fonte
            novas.append(medida)
        atualizado = {**aluno, 'measures': list(aluno.get('measures') or []) + novas}
        alunos = [atualizado if a['id'] == aluno['id'] else a for a in alunos]

    return {**turma, 'students': alunos}


def _minutos(hora: str) -> int:
    h, m = hora.split(':')
    return int(h) * 60 + int(m)


def horario_de_resposta(resposta: RespostaHorario) -> List[Dict]:
    """Duração pela diferença entre início e fim (50 se não for positiva)."""
    horario = []
    for tempo in resposta.schedule:
        inicio, fim = _minutos(tempo.startTime), _minutos(tempo.endTime)
        duracao = fim - inicio
        horario.append({
            'dayOfWeek': tempo.dayOfWeek,
            # "9:00" e "09:00" têm de dar o mesmo tempo letivo
            'startTime': f'{inicio // 60:02d}:{inicio % 60:02d}',
            'endTime': f'{fim // 60:02d}:{fim % 60:02d}',
            'duration': duracao if duracao > 0 else DURACAO_PADRAO,
        })
    return horario


def calendario_de_resposta(resposta: CalendarioEscolar) -> Dict:
    """
    Raises:
        InvalidCalendarError: datas do ano letivo inválidas.
    """
    calendario = resposta.model_dump()
    limites_ano(calendario)
    return calendario
