"""
Estado da aplicação (AppData) e transições puras.

Cada função recebe o estado atual e devolve um NOVO dicionário; nada é
alterado no lugar. O histórico de desfazer/refazer guarda estados inteiros.
"""

from datetime import date
from typing import Callable, Dict, List, Optional

from edutrocado.core.constants import DURACAO_PADRAO
from edutrocado.dominio.avaliacao import normalizar_nota
from edutrocado.dominio.calendario import calendario_padrao, mesclar_calendario
from edutrocado.dominio.geracao import gerar_aulas, horario_sem_repetidos, novo_id, registo_padrao


class EntidadeNaoEncontrada(LookupError):
    """Turma, aluno, aula ou avaliação inexistente."""


# === ESTADO RAIZ ===

def estado_inicial(hoje: Optional[date] = None) -> Dict:
    return {
        'classes': [],
        'config': {
            'cloudSyncEnabled': False,
            'calendar': calendario_padrao(hoje),
        },
    }


def substituir_estado(estado: Dict, novo: Dict) -> Dict:
    """Troca o estado inteiro mantendo a password e o nome do perfil atual."""
    config_atual = estado.get('config') or {}
    protegido = {k: config_atual[k] for k in ('appPassword', 'userName') if k in config_atual}
    return {**novo, 'config': {**(novo.get('config') or {}), **protegido}}


def estado_publico(estado: Dict) -> Dict:
    """Estado sem o hash da password local (para respostas da API)."""
    config = {k: v for k, v in (estado.get('config') or {}).items() if k != 'appPassword'}
    return {**estado, 'config': config}


def calendario_ativo(estado: Dict) -> Dict:
    return (estado.get('config') or {}).get('calendar') or calendario_padrao()


def _turma_vazia(nome: str, turma_id: str) -> Dict:
    return {
        'id': turma_id,
        'name': nome,
        'students': [],
        'lessons': [],
        'schedule': [],
        'assessments': [],
    }


def obter_turma(estado: Dict, turma_id: str) -> Dict:
    for turma in estado.get('classes', []):
        if turma['id'] == turma_id:
            return turma
    raise EntidadeNaoEncontrada(f"Turma não encontrada: {turma_id}")


def obter_aluno(turma: Dict, aluno_id: str) -> Dict:
    for aluno in turma.get('students', []):
        if aluno['id'] == aluno_id:
            return aluno
    raise EntidadeNaoEncontrada(f"Aluno não encontrado: {aluno_id}")


def _substituir_por_id(itens: List[Dict], novo: Dict) -> List[Dict]:
    return [novo if i['id'] == novo['id'] else i for i in itens]


# === TURMAS ===

def adicionar_turma(estado: Dict, nome: str, gerar_id: Callable[[], str] = novo_id,
                    duracao: Optional[int] = None) -> Dict:
    turma = _turma_vazia(nome, gerar_id())
    if duracao:
        turma['defaultDuration'] = duracao
    return {**estado, 'classes': estado.get('classes', []) + [turma]}


def renomear_turma(estado: Dict, turma_id: str, nome: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    return substituir_turma(estado, {**turma, 'name': nome})


def remover_turma(estado: Dict, turma_id: str) -> Dict:
    obter_turma(estado, turma_id)
    return {**estado, 'classes': [t for t in estado['classes'] if t['id'] != turma_id]}


def substituir_turma(estado: Dict, turma: Dict, gerar: bool = False) -> Dict:
    """Troca a turma pelo id; com gerar=True refaz as aulas geradas."""
    obter_turma(estado, turma['id'])
    if gerar:
        turma = gerar_aulas(turma, calendario_ativo(estado))
    return {**estado, 'classes': _substituir_por_id(estado['classes'], turma)}


def sincronizar_aulas(estado: Dict, hoje: Optional[date] = None) -> Dict:
    """
    Aplicado ao carregar: funde o calendário guardado com o padrão
    e regenera as aulas de todas as turmas.
    """
    config = estado.get('config') or {}
    calendario = mesclar_calendario(config.get('calendar'), hoje)
    return {
        **estado,
        'classes': [gerar_aulas(t, calendario) for t in estado.get('classes', [])],
        'config': {**config, 'calendar': calendario},
    }


def atualizar_calendario(estado: Dict, calendario: Dict) -> Dict:
    config = estado.get('config') or {}
    return {**estado, 'config': {**config, 'calendar': calendario}}


def atualizar_config(estado: Dict, **valores) -> Dict:
    config = estado.get('config') or {}
    return {**estado, 'config': {**config, **valores}}


def definir_horario(estado: Dict, turma_id: str, horario: List[Dict]) -> Dict:
    turma = obter_turma(estado, turma_id)
    return substituir_turma(estado, {**turma, 'schedule': horario_sem_repetidos(horario)}, gerar=True)


def gerar_aulas_turma(estado: Dict, turma_id: str) -> Dict:
    return substituir_turma(estado, obter_turma(estado, turma_id), gerar=True)


def alterar_turma(estado: Dict, turma_id: str, funcao: Callable[..., Dict], *args, **kwargs) -> Dict:
    """Aplica uma função pura turma -> turma (usado pelas importações)."""
    return substituir_turma(estado, funcao(obter_turma(estado, turma_id), *args, **kwargs))


# === ALUNOS ===

def guardar_aluno(estado: Dict, turma_id: str, dados: Dict,
                  gerar_id: Callable[[], str] = novo_id) -> Dict:
    """Cria (sem id) ou atualiza (com id) um aluno, mantendo notas e medidas."""
    turma = obter_turma(estado, turma_id)
    alunos = turma.get('students', [])

    if dados.get('id'):
        existente = obter_aluno(turma, dados['id'])
        alunos = _substituir_por_id(alunos, {**existente, **dados})
    else:
        aluno = {'grades': {}, 'measures': [], **dados, 'id': gerar_id()}
        alunos = alunos + [aluno]

    return substituir_turma(estado, {**turma, 'students': alunos})


def remover_aluno(estado: Dict, turma_id: str, aluno_id: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    obter_aluno(turma, aluno_id)
    alunos = [a for a in turma['students'] if a['id'] != aluno_id]
    return substituir_turma(estado, {**turma, 'students': alunos})


# === AULAS ===

def nova_aula_manual(turma: Dict, dados: Dict, gerar_id: Callable[[], str] = novo_id) -> Dict:
    """Aula manual com um registo por aluno quando não vêm registos."""
    registos = dados.get('records')
    if registos is None:
        registos = [registo_padrao(a['id']) for a in turma.get('students', [])]
    return {
        'id': dados.get('id') or gerar_id(),
        'date': dados['date'],
        'time': dados.get('time') or '08:00',
        'duration': dados.get('duration') or turma.get('defaultDuration') or DURACAO_PADRAO,
        'description': dados.get('description', ''),
        'records': registos,
    }


def guardar_aula(estado: Dict, turma_id: str, dados: Dict,
                 gerar_id: Callable[[], str] = novo_id) -> Dict:
    """
    Guarda uma aula como manual. Editar uma aula gerada torna-a manual,
    e passa a prevalecer sobre o horário nesse dia/hora.
    """
    turma = obter_turma(estado, turma_id)
    aula = nova_aula_manual(turma, dados, gerar_id)
    aulas = [a for a in turma.get('lessons', []) if a['id'] != aula['id']] + [aula]
    return substituir_turma(estado, {**turma, 'lessons': aulas})


def remover_aula(estado: Dict, turma_id: str, aula_id: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    aulas = turma.get('lessons', [])
    if not any(a['id'] == aula_id for a in aulas):
        raise EntidadeNaoEncontrada(f"Aula não encontrada: {aula_id}")
    return substituir_turma(estado, {**turma, 'lessons': [a for a in aulas if a['id'] != aula_id]})


# === AVALIAÇÕES E NOTAS ===

def adicionar_avaliacao(estado: Dict, turma_id: str, nome: str, data: str,
                        gerar_id: Callable[[], str] = novo_id, peso: Optional[float] = None) -> Dict:
    """O peso fica guardado mas não entra nas médias."""
    turma = obter_turma(estado, turma_id)
    avaliacao = {'id': gerar_id(), 'name': nome, 'date': data}
    if peso is not None:
        avaliacao['weight'] = peso
    return substituir_turma(estado, {**turma, 'assessments': (turma.get('assessments') or []) + [avaliacao]})


def _sem_nota(alunos: List[Dict], avaliacao_id: str) -> List[Dict]:
    return [
        {**a, 'grades': {k: v for k, v in (a.get('grades') or {}).items() if k != avaliacao_id}}
        for a in alunos
    ]


def limpar_notas(estado: Dict, turma_id: str, avaliacao_id: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    return substituir_turma(estado, {**turma, 'students': _sem_nota(turma.get('students', []), avaliacao_id)})


def remover_avaliacao(estado: Dict, turma_id: str, avaliacao_id: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    avaliacoes = turma.get('assessments') or []
    if not any(a['id'] == avaliacao_id for a in avaliacoes):
        raise EntidadeNaoEncontrada(f"Avaliação não encontrada: {avaliacao_id}")
    return substituir_turma(estado, {
        **turma,
        'assessments': [a for a in avaliacoes if a['id'] != avaliacao_id],
        'students': _sem_nota(turma.get('students', []), avaliacao_id),
    })


def lancar_nota(estado: Dict, turma_id: str, aluno_id: str, avaliacao_id: str, valor) -> Dict:
    """Valor vazio/inválido apaga a nota; >20 é convertido da escala 0-200."""
    turma = obter_turma(estado, turma_id)
    if not any(a['id'] == avaliacao_id for a in turma.get('assessments') or []):
        raise EntidadeNaoEncontrada(f"Avaliação não encontrada: {avaliacao_id}")
    aluno = obter_aluno(turma, aluno_id)
    notas = dict(aluno.get('grades') or {})

    nota = normalizar_nota(valor)
    if nota is None:
        notas.pop(avaliacao_id, None)
    else:
        notas[avaliacao_id] = nota

    alunos = _substituir_por_id(turma['students'], {**aluno, 'grades': notas})
    return substituir_turma(estado, {**turma, 'students': alunos})


# === MEDIDAS DE SUPORTE ===

def guardar_medida(estado: Dict, turma_id: str, aluno_id: str, dados: Dict,
                   gerar_id: Callable[[], str] = novo_id) -> Dict:
    turma = obter_turma(estado, turma_id)
    aluno = obter_aluno(turma, aluno_id)
    medidas = list(aluno.get('measures') or [])

    if dados.get('id'):
        if not any(m['id'] == dados['id'] for m in medidas):
            raise EntidadeNaoEncontrada(f"Medida não encontrada: {dados['id']}")
        medidas = [{**m, **dados} if m['id'] == dados['id'] else m for m in medidas]
    else:
        medidas.append({**dados, 'id': gerar_id()})

    alunos = _substituir_por_id(turma['students'], {**aluno, 'measures': medidas})
    return substituir_turma(estado, {**turma, 'students': alunos})


def remover_medida(estado: Dict, turma_id: str, aluno_id: str, medida_id: str) -> Dict:
    turma = obter_turma(estado, turma_id)
    aluno = obter_aluno(turma, aluno_id)
    medidas = [m for m in aluno.get('measures') or [] if m['id'] != medida_id]
    alunos = _substituir_por_id(turma['students'], {**aluno, 'measures': medidas})
    return substituir_turma(estado, {**turma, 'students': alunos})


# === HISTÓRICO (DESFAZER / REFAZER) ===

class Historico:
    """
    Estado atual mais duas pilhas limitadas de instantâneos.

    Enquanto um desfazer/refazer aplica um instantâneo (a_viajar=True),
    registar() não cria nova entrada nem limpa o futuro.
    """

    def __init__(self, estado: Dict, capacidade: int = 20):
        self.atual = estado
        self.capacidade = capacidade
        self.passado: List[Dict] = []
        self.futuro: List[Dict] = []
        self.a_viajar = False

    @property
    def pode_desfazer(self) -> bool:
        return bool(self.passado)

    @property
    def pode_refazer(self) -> bool:
        return bool(self.futuro)

    def registar(self, novo: Dict) -> Dict:
        if self.a_viajar:
            self.atual = novo
            return novo

        if novo == self.atual:
            return novo
        if not self.passado or self.passado[-1] != self.atual:
            self.passado = (self.passado + [self.atual])[-self.capacidade:]
        self.futuro = []
        self.atual = novo
        return novo

    def substituir(self, estado: Dict) -> Dict:
        """Troca o estado sem histórico (carregamento, restauro de backup)."""
        self.atual = estado
        self.passado = []
        self.futuro = []
        return estado

    def desfazer(self) -> Optional[Dict]:
        if not self.passado:
            return None
        self.a_viajar = True
        try:
            anterior = self.passado[-1]
            self.passado = self.passado[:-1]
            self.futuro = ([self.atual] + self.futuro)[:self.capacidade]
            return self.registar(anterior)
        finally:
            self.a_viajar = False

    def refazer(self) -> Optional[Dict]:
        if not self.futuro:
            return None
        self.a_viajar = True
        try:
            seguinte = self.futuro[0]
            self.futuro = self.futuro[1:]
            self.passado = (self.passado + [self.atual])[-self.capacidade:]
            return self.registar(seguinte)
        finally:
            self.a_viajar = False
