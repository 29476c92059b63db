"""
Relatórios da turma e perfil do aluno (dados prontos para os gráficos).
"""

from typing import Dict, Optional

from edutrocado.dominio.assiduidade import evolucao_aluno, ocorrencias_aluno, resumo_assiduidade
from edutrocado.dominio.avaliacao import (
    formatar_media,
    historico_notas,
    media_aluno,
    media_turma,
)
from edutrocado.dominio.calendario import dentro_intervalo, intervalo_periodo
from edutrocado.dominio.estado import obter_aluno


def relatorio_turma(turma: Dict, calendario: Optional[Dict], periodo: str = 'all',
                    personalizado: Optional[Dict] = None,
                    aluno_id: Optional[str] = None) -> Dict:
    """
    Desempenho da turma (ou de um aluno) no período escolhido.

    As avaliações fora do período são ignoradas; se nenhuma cair no período,
    usam-se todas para o gráfico não ficar vazio.
    """
    inicio, fim, rotulo = intervalo_periodo(calendario, periodo, personalizado)
    alunos = turma.get('students') or []
    todas = turma.get('assessments') or []

    avaliacoes = [a for a in todas if dentro_intervalo(a.get('date', ''), inicio, fim)] or todas
    avaliacoes = sorted(avaliacoes, key=lambda a: a.get('date', ''))

    if aluno_id:
        aluno = obter_aluno(turma, aluno_id)
        notas = [{'name': h['name'], 'nota': h['nota']} for h in historico_notas(aluno, avaliacoes)]
    else:
        notas = []
        for a in avaliacoes:
            media = media_turma(alunos, a['id'])
            if media is not None:
                notas.append({'name': a.get('name'), 'nota': float(formatar_media(media))})

    medidas = [
        {**m, 'studentId': al['id'], 'studentName': al.get('name')}
        for al in alunos
        if not aluno_id or al['id'] == aluno_id
        for m in al.get('measures') or []
        if dentro_intervalo(m.get('date', ''), inicio, fim)
    ]

    return {
        'periodo': {'inicio': inicio, 'fim': fim, 'rotulo': rotulo},
        'avaliacoes': notas,
        'assiduidade': resumo_assiduidade(turma.get('lessons') or [], aluno_id, inicio, fim),
        'medidas': sorted(medidas, key=lambda m: m.get('date', '')),
    }


def perfil_aluno(turma: Dict, aluno_id: str) -> Dict:
    aluno = obter_aluno(turma, aluno_id)
    aulas = turma.get('lessons') or []
    avaliacoes = turma.get('assessments') or []
    return {
        'aluno': aluno,
        'media': formatar_media(media_aluno(aluno, avaliacoes)),
        'notas': historico_notas(aluno, avaliacoes),
        'assiduidade': resumo_assiduidade(aulas, aluno_id),
        'ocorrencias': ocorrencias_aluno(aulas, aluno_id),
        'evolucao': evolucao_aluno(aulas, aluno_id),
        'medidas': sorted(aluno.get('measures') or [], key=lambda m: m.get('date', '')),
    }
