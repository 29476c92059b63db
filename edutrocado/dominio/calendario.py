"""
Calendário escolar: limites do ano letivo, interrupções (feriados) e períodos.

O calendário é um dicionário no formato guardado na cloud:
    {"yearStart": "2025-09-08", "yearEnd": "2026-06-30",
     "holidays": [{"name", "startDate", "endDate"}],
     "terms": [{"name", "startDate", "endDate"}]}
"""

from datetime import date, datetime
from typing import Dict, List, Optional, Tuple


class InvalidCalendarError(ValueError):
    """Limites do calendário em falta ou mal formados."""


FORMATO_DATA = '%Y-%m-%d'

PREFIXOS_PERIODO = {'term1': '1º', 'term2': '2º', 'term3': '3º'}


def _ano_inicial(hoje: date) -> int:
    # O ano letivo começa em setembro
    return hoje.year if hoje.month >= 9 else hoje.year - 1


def calendario_padrao(hoje: Optional[date] = None) -> Dict:
    """Calendário usado quando o professor ainda não configurou nenhum."""
    ano = _ano_inicial(hoje or date.today())
    seguinte = ano + 1
    return {
        'yearStart': f'{ano}-09-08',
        'yearEnd': f'{seguinte}-06-30',
        'holidays': [],
        'terms': [
            {'name': '1º Período', 'startDate': f'{ano}-09-08', 'endDate': f'{ano}-12-16'},
            {'name': '2º Período', 'startDate': f'{seguinte}-01-05', 'endDate': f'{seguinte}-03-27'},
            {'name': '3º Período', 'startDate': f'{seguinte}-04-13', 'endDate': f'{seguinte}-06-05'},
        ],
    }


def mesclar_calendario(guardado: Optional[Dict], hoje: Optional[date] = None) -> Dict:
    """Sobrepõe as chaves guardadas ao calendário padrão."""
    return {**calendario_padrao(hoje), **(guardado or {})}


def ler_data(texto: str) -> date:
    try:
        return datetime.strptime(texto, FORMATO_DATA).date()
    except (TypeError, ValueError) as e:
        raise InvalidCalendarError(f"Data inválida no calendário: {texto!r}") from e


def limites_ano(calendario: Optional[Dict]) -> Optional[Tuple[date, date]]:
    """
    Devolve (inicio, fim) do ano letivo.

    None quando o calendário não tem nenhum dos limites (nada a gerar).
    Limites parciais, mal formados ou invertidos são erro de configuração.
    """
    calendario = calendario or {}
    inicio_txt = calendario.get('yearStart')
    fim_txt = calendario.get('yearEnd')

    if not inicio_txt and not fim_txt:
        return None
    if not inicio_txt or not fim_txt:
        raise InvalidCalendarError("O calendário precisa de início e fim do ano letivo.")

    inicio = ler_data(inicio_txt)
    fim = ler_data(fim_txt)
    if inicio > fim:
        raise InvalidCalendarError(
            f"Início do ano letivo ({inicio_txt}) posterior ao fim ({fim_txt})."
        )
    return inicio, fim


def em_feriado(data_iso: str, feriados: List[Dict]) -> bool:
    """Intervalos fechados, comparados como strings YYYY-MM-DD."""
    return any(
        f.get('startDate', '') <= data_iso <= f.get('endDate', '')
        for f in feriados or []
    )


def intervalo_periodo(calendario: Optional[Dict], periodo: str = 'all',
                      personalizado: Optional[Dict] = None) -> Tuple[str, str, str]:
    """
    Intervalo de datas (inicio, fim, rótulo) usado nos relatórios.

    periodo: 'all' | 'term1' | 'term2' | 'term3' | 'custom'
    """
    cal = mesclar_calendario(calendario)

    if periodo == 'all':
        return cal['yearStart'], cal['yearEnd'], 'Todo o Ano Letivo'

    if periodo == 'custom':
        personalizado = personalizado or {}
        return (personalizado.get('start', ''), personalizado.get('end', ''),
                'Intervalo Personalizado')

    prefixo = PREFIXOS_PERIODO.get(periodo)
    if prefixo is None:
        raise ValueError(f"Período desconhecido: {periodo}")

    for termo in cal.get('terms') or []:
        if termo.get('name', '').startswith(prefixo):
            return termo['startDate'], termo['endDate'], termo['name']
    return '', '', 'Período não configurado'


def dentro_intervalo(data_iso: str, inicio: str = '', fim: str = '') -> bool:
    """Limites vazios não restringem."""
    if inicio and data_iso < inicio:
        return False
    if fim and data_iso > fim:
        return False
    return True
