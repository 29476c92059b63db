"""
Correspondência aproximada de nomes de alunos.

Os nomes extraídos por IA raramente batem certo com a lista da turma
(acentos, abreviaturas, apelidos em falta). O critério fica isolado numa
classe para poder ser trocado nos testes ou por outra heurística.
"""

import re
import unicodedata
from typing import Dict, Iterable, Optional, Protocol


def normalizar_nome(nome: str) -> str:
    """Minúsculas, sem acentos, pontuação trocada por espaço."""
    if not nome:
        return ""
    nfkd_form = unicodedata.normalize('NFKD', nome.lower())
    sem_acentos = "".join(c for c in nfkd_form if not unicodedata.combining(c))
    sem_pontuacao = re.sub(r'[^\w\s]', ' ', sem_acentos)
    return re.sub(r'\s+', ' ', sem_pontuacao).strip()


def _partes(nome: str):
    # Partículas curtas ("da", "de", "e") não contam
    return [p for p in normalizar_nome(nome).split(' ') if len(p) > 2]


class CorrespondenciaNomes(Protocol):
    def match(self, candidato: str, nome_roster: str) -> bool:
        ...


class CorrespondenciaPorPartes:
    """
    Igual depois de normalizado, ou pelo menos 2 partes do nome em comum,
    ou um candidato de uma só parte presente no nome da lista.
    """

    def __init__(self, minimo_partes: int = 2):
        self.minimo_partes = minimo_partes

    def match(self, candidato: str, nome_roster: str) -> bool:
        a = normalizar_nome(candidato)
        b = normalizar_nome(nome_roster)
        if not a or not b:
            return False
        if a == b:
            return True

        partes_a = _partes(candidato)
        partes_b = _partes(nome_roster)
        comuns = len([p for p in partes_a if p in partes_b])
        return comuns >= self.minimo_partes or (len(partes_a) == 1 and partes_a[0] in partes_b)


CORRESPONDENCIA_PADRAO = CorrespondenciaPorPartes()


def encontrar_aluno(candidato: str, alunos: Iterable[Dict],
                    criterio: Optional[CorrespondenciaNomes] = None) -> Optional[Dict]:
    """Primeiro aluno da lista cujo nome corresponde ao candidato."""
    criterio = criterio or CORRESPONDENCIA_PADRAO
    for aluno in alunos:
        if criterio.match(candidato, aluno.get('name', '')):
            return aluno
    return None
