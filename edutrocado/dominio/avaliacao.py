"""
Notas e médias.

Regra de descarte: com 5 ou mais notas, ignora-se a pior nota de entre
todas exceto a da avaliação mais recente, que conta sempre.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Dict, List, Optional, Union

from edutrocado.core.constants import MINIMO_NOTAS_DESCARTE, NOTA_MAXIMA


def normalizar_nota(valor: Union[str, int, float, None]) -> Optional[float]:
    """
    Converte a nota introduzida para a escala 0-20.

    Valores acima de 20 são tratados como escala 0-200 e divididos por 10.
    Vazio ou não numérico devolve None (a nota é apagada).
    """
    if valor is None or isinstance(valor, bool):
        return None
    if isinstance(valor, str):
        texto = valor.strip().replace(',', '.')
        if not texto:
            return None
        try:
            numero = float(texto)
        except ValueError:
            return None
    else:
        numero = float(valor)

    if numero != numero:  # NaN
        return None
    if numero > NOTA_MAXIMA:
        numero = numero / 10
    return numero


def notas_validas(aluno: Dict, avaliacoes: List[Dict]) -> List[float]:
    notas = aluno.get('grades') or {}
    valores = (notas.get(a['id']) for a in avaliacoes)
    return [v for v in valores if v is not None]


def media_aluno(aluno: Dict, avaliacoes: List[Dict]) -> Optional[float]:
    """Média do aluno nas avaliações da turma; None quando não há notas."""
    notas = notas_validas(aluno, avaliacoes)
    if not notas:
        return None

    if len(notas) >= MINIMO_NOTAS_DESCARTE:
        ultima = notas[-1]
        restantes = notas[:-1]
        # list.remove retira a primeira ocorrência do mínimo
        restantes.remove(min(restantes))
        notas = restantes + [ultima]

    return sum(notas) / len(notas)


def media_turma(alunos: List[Dict], avaliacao_id: str) -> Optional[float]:
    notas = [
        (a.get('grades') or {}).get(avaliacao_id)
        for a in alunos
    ]
    notas = [n for n in notas if n is not None]
    if not notas:
        return None
    return sum(notas) / len(notas)


def formatar_media(valor: Optional[float]) -> str:
    """Uma casa decimal para exibição ('-' sem dados)."""
    if valor is None:
        return '-'
    try:
        arredondado = Decimal(str(valor)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return '-'
    return str(arredondado)


def historico_notas(aluno: Dict, avaliacoes: List[Dict]) -> List[Dict]:
    notas = aluno.get('grades') or {}
    return [
        {'id': a['id'], 'name': a.get('name'), 'date': a.get('date'), 'nota': notas[a['id']]}
        for a in avaliacoes
        if notas.get(a['id']) is not None
    ]


def pauta_turma(turma: Dict) -> Dict:
    """Pauta da turma: médias por aluno e por avaliação, já formatadas."""
    avaliacoes = turma.get('assessments') or []
    alunos = sorted(turma.get('students') or [], key=lambda a: a.get('name', ''))
    return {
        'alunos': [
            {
                'id': a['id'],
                'name': a.get('name'),
                'grades': a.get('grades') or {},
                'media': formatar_media(media_aluno(a, avaliacoes)),
            }
            for a in alunos
        ],
        'avaliacoes': [
            {**av, 'mediaTurma': formatar_media(media_turma(alunos, av['id']))}
            for av in avaliacoes
        ],
    }
