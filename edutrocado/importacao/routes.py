"""
Rotas do Módulo de Importação

Multipart com o campo 'arquivo' (PDF ou imagem). Se a IA falhar, o
estado fica intacto e a resposta é 502.
"""

from flask import g, jsonify, request

from . import importacao_bp
from . import services as importacao_services
from edutrocado.auth.services import login_obrigatorio
from edutrocado.core.logger import get_logger
from edutrocado.core.sincronizacao import obter_sessao
from edutrocado.dominio import estado as transicoes
from edutrocado.dominio.importacao import (
    calendario_de_resposta,
    horario_de_resposta,
    mesclar_alunos,
    mesclar_medidas,
    mesclar_notas,
)

logger = get_logger(__name__)

MODOS_ALUNOS = ('create', 'update')


def _arquivo():
    arquivo = request.files.get('arquivo')
    if arquivo is None or arquivo.filename == '':
        return None
    return arquivo


def _sem_arquivo():
    return jsonify({'error': 'Nenhum ficheiro.'}), 400


@importacao_bp.before_request
@login_obrigatorio
def exigir_perfil():
    return None


@importacao_bp.route('/turmas/<turma_id>/importar/alunos', methods=['POST'])
def importar_alunos(turma_id):
    arquivo = _arquivo()
    if arquivo is None:
        return _sem_arquivo()
    modo = request.form.get('modo', 'create')
    if modo not in MODOS_ALUNOS:
        return jsonify({'error': f"Modo inválido: {modo}"}), 400

    sessao = obter_sessao(g.perfil)
    transicoes.obter_turma(sessao.estado, turma_id)

    alunos = importacao_services.extrair_alunos(arquivo)
    sessao.aplicar(transicoes.alterar_turma, turma_id, mesclar_alunos, alunos, modo)
    return jsonify({'importados': len(alunos), 'alunos': alunos})


@importacao_bp.route('/turmas/<turma_id>/importar/notas', methods=['POST'])
def importar_notas(turma_id):
    arquivo = _arquivo()
    if arquivo is None:
        return _sem_arquivo()

    sessao = obter_sessao(g.perfil)
    transicoes.obter_turma(sessao.estado, turma_id)

    resposta = importacao_services.extrair_notas(arquivo)
    sessao.aplicar(transicoes.alterar_turma, turma_id, mesclar_notas, resposta)
    return jsonify({'avaliacoes': len(resposta.assessments)})


@importacao_bp.route('/turmas/<turma_id>/importar/medidas', methods=['POST'])
def importar_medidas(turma_id):
    arquivo = _arquivo()
    if arquivo is None:
        return _sem_arquivo()

    sessao = obter_sessao(g.perfil)
    transicoes.obter_turma(sessao.estado, turma_id)

    resposta = importacao_services.extrair_medidas(arquivo)
    sessao.aplicar(transicoes.alterar_turma, turma_id, mesclar_medidas, resposta,
                   fonte=arquivo.filename)
    return jsonify({'alunos': len(resposta.results)})


@importacao_bp.route('/turmas/<turma_id>/importar/horario', methods=['POST'])
def importar_horario(turma_id):
    arquivo = _arquivo()
    if arquivo is None:
        return _sem_arquivo()

    sessao = obter_sessao(g.perfil)
    transicoes.obter_turma(sessao.estado, turma_id)

    horario = horario_de_resposta(importacao_services.extrair_horario(arquivo))
    sessao.aplicar(transicoes.definir_horario, turma_id, horario)
    logger.info(f"Horário importado para a turma {turma_id}: {len(horario)} tempos.")
    return jsonify({'schedule': horario})


@importacao_bp.route('/importar/calendario', methods=['POST'])
def importar_calendario():
    """O calendário é global; as aulas só são regeneradas ao pedir /gerar."""
    arquivo = _arquivo()
    if arquivo is None:
        return _sem_arquivo()

    calendario = calendario_de_resposta(importacao_services.extrair_calendario(arquivo))
    obter_sessao(g.perfil).aplicar(transicoes.atualizar_calendario, calendario)
    return jsonify(calendario)
