"""
Rotas do Módulo de Turmas

Todas as alterações passam por sessao.aplicar(transição, ...): o estado
novo entra no histórico (desfazer/refazer) e a gravação na cloud fica
agendada. Os erros de domínio são convertidos em JSON na aplicação.
"""

import io
from datetime import datetime

from flask import g, jsonify, request, send_file

from . import turmas_bp
from .forms import AlunoForm, AulaForm, AvaliacaoForm, MedidaForm, NotaForm, TurmaForm
from edutrocado.auth.services import login_obrigatorio
from edutrocado.core import backup, storage
from edutrocado.core.logger import get_logger
from edutrocado.core.sincronizacao import obter_sessao
from edutrocado.dominio import estado as transicoes
from edutrocado.dominio.avaliacao import pauta_turma
from edutrocado.dominio.estado import calendario_ativo, estado_publico, obter_turma
from edutrocado.dominio.geracao import novo_id, ordenar_aulas
from edutrocado.dominio.importacao import calendario_de_resposta
from edutrocado.dominio.modelos import CalendarioEscolar, EstadoBackup, Horario, Registos
from edutrocado.dominio.relatorios import perfil_aluno, relatorio_turma

logger = get_logger(__name__)


# === FUNÇÕES AUXILIARES ===

def _sessao():
    return obter_sessao(g.perfil)


def _resposta_estado(sessao, status=200):
    return jsonify({
        'data': estado_publico(sessao.estado),
        'sync': sessao.status,
        'podeDesfazer': sessao.historico.pode_desfazer,
        'podeRefazer': sessao.historico.pode_refazer,
    }), status


def _invalido(form):
    return jsonify({'error': 'Dados inválidos.', 'campos': form.errors}), 400


def _turma(sessao, turma_id):
    return obter_turma(sessao.estado, turma_id)


def _json():
    return request.get_json(silent=True) or {}


@turmas_bp.before_request
@login_obrigatorio
def exigir_perfil():
    """Toda a API de turmas exige o perfil local desbloqueado."""
    return None


# === ESTADO, HISTÓRICO E SINCRONIZAÇÃO ===

@turmas_bp.route('/estado')
def obter_estado():
    return _resposta_estado(_sessao())


@turmas_bp.route('/estado', methods=['PUT'])
def substituir_estado():
    dados = _json()
    EstadoBackup.model_validate(dados)
    sessao = _sessao()
    sessao.aplicar(transicoes.substituir_estado, dados)
    return _resposta_estado(sessao)


def _resposta_sync(sessao):
    return jsonify({
        'sync': sessao.status,
        'pendente': sessao.persistencia.tem_pendente,
        'lastSync': sessao.ultima_sync,
    })


@turmas_bp.route('/estado/sync')
def estado_sync():
    return _resposta_sync(_sessao())


@turmas_bp.route('/estado/sync', methods=['POST'])
def sincronizar_agora():
    """Sincronização manual: envia já o estado, sem esperar pelo atraso."""
    sessao = _sessao()
    status = sessao.sincronizar_agora()
    logger.info(f"Sincronização manual de {g.perfil}: {status}")
    return _resposta_sync(sessao)


@turmas_bp.route('/desfazer', methods=['POST'])
def desfazer():
    sessao = _sessao()
    sessao.desfazer()
    return _resposta_estado(sessao)


@turmas_bp.route('/refazer', methods=['POST'])
def refazer():
    sessao = _sessao()
    sessao.refazer()
    return _resposta_estado(sessao)


# === CALENDÁRIO ===

@turmas_bp.route('/calendario')
def obter_calendario():
    return jsonify(calendario_ativo(_sessao().estado))


@turmas_bp.route('/calendario', methods=['PUT'])
def guardar_calendario():
    """As aulas não são regeneradas aqui; usa-se /turmas/<id>/gerar."""
    calendario = calendario_de_resposta(CalendarioEscolar.model_validate(_json()))
    sessao = _sessao()
    sessao.aplicar(transicoes.atualizar_calendario, calendario)
    return jsonify(calendario)


# === TURMAS ===

@turmas_bp.route('/turmas')
def listar_turmas():
    turmas = [
        {
            'id': t['id'],
            'name': t.get('name'),
            'alunos': len(t.get('students') or []),
            'aulas': len(t.get('lessons') or []),
        }
        for t in _sessao().estado.get('classes', [])
    ]
    return jsonify(turmas)


@turmas_bp.route('/turmas', methods=['POST'])
def criar_turma():
    form = TurmaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    turma_id = novo_id()
    sessao.aplicar(transicoes.adicionar_turma, form.name.data.strip(),
                   gerar_id=lambda: turma_id, duracao=form.defaultDuration.data)

    logger.info(f"Turma criada: {form.name.data}")
    return jsonify(_turma(sessao, turma_id)), 201


@turmas_bp.route('/turmas/<turma_id>')
def obter_turma_rota(turma_id):
    return jsonify(_turma(_sessao(), turma_id))


@turmas_bp.route('/turmas/<turma_id>', methods=['PUT'])
def atualizar_turma(turma_id):
    form = TurmaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    turma = _turma(sessao, turma_id)
    sessao.aplicar(transicoes.substituir_turma, {**turma, **form.enviados()})
    return jsonify(_turma(sessao, turma_id))


@turmas_bp.route('/turmas/<turma_id>', methods=['DELETE'])
def apagar_turma(turma_id):
    _sessao().aplicar(transicoes.remover_turma, turma_id)
    logger.info(f"Turma removida: {turma_id}")
    return jsonify({'ok': True})


@turmas_bp.route('/turmas/<turma_id>/gerar', methods=['POST'])
def gerar_aulas(turma_id):
    sessao = _sessao()
    sessao.aplicar(transicoes.gerar_aulas_turma, turma_id)
    return jsonify({'aulas': len(_turma(sessao, turma_id).get('lessons') or [])})


@turmas_bp.route('/turmas/<turma_id>/horario', methods=['PUT'])
def definir_horario(turma_id):
    horario = Horario.model_validate(_json())
    sessao = _sessao()
    sessao.aplicar(
        transicoes.definir_horario,
        turma_id,
        [e.model_dump(exclude_none=True) for e in horario.schedule],
    )
    return jsonify(_turma(sessao, turma_id).get('schedule'))


# === ALUNOS ===

@turmas_bp.route('/turmas/<turma_id>/alunos', methods=['POST'])
def criar_aluno(turma_id):
    form = AlunoForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    aluno_id = novo_id()
    sessao.aplicar(transicoes.guardar_aluno, turma_id, form.enviados(), gerar_id=lambda: aluno_id)
    return jsonify(transicoes.obter_aluno(_turma(sessao, turma_id), aluno_id)), 201


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>', methods=['PUT'])
def atualizar_aluno(turma_id, aluno_id):
    form = AlunoForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    sessao.aplicar(transicoes.guardar_aluno, turma_id, {**form.enviados(), 'id': aluno_id})
    return jsonify(transicoes.obter_aluno(_turma(sessao, turma_id), aluno_id))


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>', methods=['DELETE'])
def apagar_aluno(turma_id, aluno_id):
    _sessao().aplicar(transicoes.remover_aluno, turma_id, aluno_id)
    return jsonify({'ok': True})


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>/perfil')
def perfil(turma_id, aluno_id):
    return jsonify(perfil_aluno(_turma(_sessao(), turma_id), aluno_id))


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>/foto', methods=['POST'])
def enviar_foto(turma_id, aluno_id):
    arquivo = request.files.get('arquivo')
    if arquivo is None or arquivo.filename == '':
        return jsonify({'error': 'Nenhum ficheiro.'}), 400
    if not (arquivo.mimetype or '').startswith('image/'):
        return jsonify({'error': 'Apenas imagens são permitidas.'}), 400

    sessao = _sessao()
    transicoes.obter_aluno(_turma(sessao, turma_id), aluno_id)

    url = storage.upload_file(arquivo, f"student_{aluno_id}_{arquivo.filename}", arquivo.mimetype)
    sessao.aplicar(transicoes.guardar_aluno, turma_id, {'id': aluno_id, 'photo': url})
    return jsonify({'photo': url})


# === AULAS ===

@turmas_bp.route('/turmas/<turma_id>/aulas')
def listar_aulas(turma_id):
    agora = datetime.now()
    aulas = _turma(_sessao(), turma_id).get('lessons') or []
    return jsonify(ordenar_aulas(aulas, agora.strftime('%Y-%m-%d'), agora.strftime('%H:%M')))


def _dados_aula(form):
    dados = form.enviados()
    if 'records' in _json():
        dados['records'] = [r.model_dump() for r in Registos.model_validate(_json()).records]
    return dados


@turmas_bp.route('/turmas/<turma_id>/aulas', methods=['POST'])
def criar_aula(turma_id):
    form = AulaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    aula_id = novo_id()
    sessao.aplicar(transicoes.guardar_aula, turma_id, {**_dados_aula(form), 'id': aula_id})
    aula = next(a for a in _turma(sessao, turma_id)['lessons'] if a['id'] == aula_id)
    return jsonify(aula), 201


@turmas_bp.route('/turmas/<turma_id>/aulas/<aula_id>', methods=['PUT'])
def atualizar_aula(turma_id, aula_id):
    """Guardar uma aula gerada torna-a manual (passa a prevalecer sobre o horário)."""
    form = AulaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    turma = _turma(sessao, turma_id)
    existente = next((a for a in turma.get('lessons') or [] if a['id'] == aula_id), None)
    if existente is None:
        return jsonify({'error': 'Aula não encontrada.'}), 404

    base = {k: v for k, v in existente.items() if k != 'isGenerated'}
    sessao.aplicar(transicoes.guardar_aula, turma_id, {**base, **_dados_aula(form), 'id': aula_id})
    aula = next(a for a in _turma(sessao, turma_id)['lessons'] if a['id'] == aula_id)
    return jsonify(aula)


@turmas_bp.route('/turmas/<turma_id>/aulas/<aula_id>', methods=['DELETE'])
def apagar_aula(turma_id, aula_id):
    _sessao().aplicar(transicoes.remover_aula, turma_id, aula_id)
    return jsonify({'ok': True})


# === AVALIAÇÕES E NOTAS ===

@turmas_bp.route('/turmas/<turma_id>/avaliacoes')
def pauta(turma_id):
    return jsonify(pauta_turma(_turma(_sessao(), turma_id)))


@turmas_bp.route('/turmas/<turma_id>/avaliacoes', methods=['POST'])
def criar_avaliacao(turma_id):
    form = AvaliacaoForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    avaliacao_id = novo_id()
    sessao.aplicar(transicoes.adicionar_avaliacao, turma_id, form.name.data.strip(),
                   form.date.data, gerar_id=lambda: avaliacao_id, peso=form.weight.data)
    avaliacao = next(a for a in _turma(sessao, turma_id)['assessments'] if a['id'] == avaliacao_id)
    return jsonify(avaliacao), 201


@turmas_bp.route('/turmas/<turma_id>/avaliacoes/<avaliacao_id>', methods=['DELETE'])
def apagar_avaliacao(turma_id, avaliacao_id):
    _sessao().aplicar(transicoes.remover_avaliacao, turma_id, avaliacao_id)
    return jsonify({'ok': True})


@turmas_bp.route('/turmas/<turma_id>/avaliacoes/<avaliacao_id>/limpar', methods=['POST'])
def limpar_notas(turma_id, avaliacao_id):
    _sessao().aplicar(transicoes.limpar_notas, turma_id, avaliacao_id)
    return jsonify({'ok': True})


@turmas_bp.route('/turmas/<turma_id>/avaliacoes/<avaliacao_id>/notas/<aluno_id>', methods=['PUT'])
def lancar_nota(turma_id, avaliacao_id, aluno_id):
    form = NotaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    sessao.aplicar(transicoes.lancar_nota, turma_id, aluno_id, avaliacao_id, form.value.data)
    aluno = transicoes.obter_aluno(_turma(sessao, turma_id), aluno_id)
    return jsonify({'value': (aluno.get('grades') or {}).get(avaliacao_id)})


# === MEDIDAS DE SUPORTE ===

@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>/medidas', methods=['POST'])
def criar_medida(turma_id, aluno_id):
    form = MedidaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    sessao = _sessao()
    medida_id = novo_id()
    sessao.aplicar(transicoes.guardar_medida, turma_id, aluno_id, form.enviados(),
                   gerar_id=lambda: medida_id)
    return jsonify({**form.enviados(), 'id': medida_id}), 201


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>/medidas/<medida_id>', methods=['PUT'])
def atualizar_medida(turma_id, aluno_id, medida_id):
    form = MedidaForm()
    if not form.validate_on_submit():
        return _invalido(form)

    _sessao().aplicar(transicoes.guardar_medida, turma_id, aluno_id,
                      {**form.enviados(), 'id': medida_id})
    return jsonify({**form.enviados(), 'id': medida_id})


@turmas_bp.route('/turmas/<turma_id>/alunos/<aluno_id>/medidas/<medida_id>', methods=['DELETE'])
def apagar_medida(turma_id, aluno_id, medida_id):
    _sessao().aplicar(transicoes.remover_medida, turma_id, aluno_id, medida_id)
    return jsonify({'ok': True})


# === RELATÓRIOS ===

@turmas_bp.route('/turmas/<turma_id>/relatorio')
def relatorio(turma_id):
    sessao = _sessao()
    personalizado = {'start': request.args.get('inicio', ''), 'end': request.args.get('fim', '')}
    try:
        dados = relatorio_turma(
            _turma(sessao, turma_id),
            calendario_ativo(sessao.estado),
            request.args.get('periodo', 'all'),
            personalizado,
            request.args.get('aluno') or None,
        )
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify(dados)


# === BACKUP ===

@turmas_bp.route('/backup')
def exportar_backup():
    conteudo = backup.exportar_backup(estado_publico(_sessao().estado))
    nome = f"backup_turmas_{datetime.now().strftime('%Y-%m-%d')}.zip"
    return send_file(io.BytesIO(conteudo), mimetype='application/zip',
                     as_attachment=True, download_name=nome)


@turmas_bp.route('/backup', methods=['POST'])
def importar_backup():
    arquivo = request.files.get('arquivo')
    if arquivo is None or arquivo.filename == '':
        return jsonify({'error': 'Nenhum ficheiro.'}), 400

    dados = backup.importar_backup(arquivo)
    sessao = _sessao()
    sessao.restaurar(transicoes.substituir_estado(sessao.estado, dados))
    logger.info(f"Backup restaurado para {g.perfil}")
    return _resposta_estado(sessao)
