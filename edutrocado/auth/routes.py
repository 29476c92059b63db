"""
Rotas do Módulo de Autenticação

/api/auth/login  -> credenciais globais
/api/auth/local  -> desbloqueio (ou configuração inicial) do perfil local
/api/auth/logout -> termina a sessão e grava o que estiver pendente
"""

from flask import g, jsonify, session
from flask_wtf.csrf import generate_csrf

from . import auth_bp
from . import services as auth_services
from .forms import DesbloqueioLocalForm, LoginForm
from edutrocado.core.extensions import limiter
from edutrocado.core.logger import get_logger
from edutrocado.core.sincronizacao import encerrar_sessao, obter_sessao
from edutrocado.dominio.estado import atualizar_config

logger = get_logger(__name__)


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify({'error': 'Preencha utilizador e password.', 'campos': form.errors}), 400

    if not auth_services.validar_credenciais(form.user.data, form.password.data):
        logger.warning("Tentativa de login global falhada.")
        return jsonify({'error': auth_services.MENSAGEM_CREDENCIAIS}), 401

    token = auth_services.emitir_token(form.user.data)
    session['auth_token'] = token
    logger.info(f"Login global efetuado: {form.user.data}")
    return jsonify({'token': token})


@auth_bp.route('/local', methods=['POST'])
@auth_services.acesso_global_obrigatorio
def desbloquear_local():
    form = DesbloqueioLocalForm()
    if not form.validate_on_submit():
        return jsonify({'error': 'Dados inválidos.', 'campos': form.errors}), 400

    perfil = auth_services.perfil_local(form.userName.data)
    sessao = obter_sessao(perfil)
    hash_guardado = (sessao.estado.get('config') or {}).get('appPassword')

    if not hash_guardado:
        # Primeiro acesso: a password enviada fica como password do perfil
        sessao.aplicar(
            atualizar_config,
            appPassword=auth_services.definir_password_local(form.password.data),
            userName=perfil,
        )
        logger.info(f"Perfil local configurado: {perfil}")
    elif not auth_services.verificar_password_local(hash_guardado, form.password.data):
        return jsonify({'error': 'Password incorreta.'}), 401

    token = auth_services.emitir_token(g.utilizador, perfil)
    session['auth_token'] = token
    return jsonify({'token': token, 'perfil': perfil, 'sync': sessao.status})


@auth_bp.route('/logout', methods=['POST'])
@auth_services.login_obrigatorio
def logout():
    encerrar_sessao(g.perfil)
    session.pop('auth_token', None)
    return jsonify({'ok': True})


@auth_bp.route('/sessao')
@auth_services.login_obrigatorio
def sessao_atual():
    sessao = obter_sessao(g.perfil)
    return jsonify({'utilizador': g.utilizador, 'perfil': g.perfil, 'sync': sessao.status})


@auth_bp.route('/csrf')
def csrf_token():
    """Token CSRF para clientes que usam o cookie de sessão."""
    return jsonify({'csrfToken': generate_csrf()})
