"""
Camada de Serviço (Service Layer) da Autenticação

Dois níveis de acesso:
1. Credenciais globais (APP_USER / APP_PASSWORD, só no servidor) -> token de acesso.
2. Password local do perfil (hash guardado no estado) -> token completo da API.

Os tokens são assinados com itsdangerous usando a SECRET_KEY da aplicação.
"""

import hmac
from functools import wraps
from typing import Dict, Optional

from flask import current_app, g, jsonify, request, session
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import check_password_hash, generate_password_hash

from edutrocado.core.constants import UTILIZADOR_PADRAO
from edutrocado.core.extensions import csrf
from edutrocado.core.logger import get_logger

logger = get_logger(__name__)

SALT_TOKEN = 'edutrocado-auth'
MENSAGEM_CREDENCIAIS = 'Credenciais inválidas.'


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=SALT_TOKEN)


def validar_credenciais(utilizador: str, password: str) -> bool:
    """Comparação em tempo constante; não revela qual dos campos falhou."""
    esperado_user = current_app.config.get('APP_USER') or ''
    esperado_pass = current_app.config.get('APP_PASSWORD') or ''
    user_ok = hmac.compare_digest((utilizador or '').encode(), esperado_user.encode())
    pass_ok = hmac.compare_digest((password or '').encode(), esperado_pass.encode())
    return user_ok and pass_ok


def emitir_token(utilizador: str, perfil: Optional[str] = None) -> str:
    """Sem perfil o token só dá acesso ao desbloqueio local."""
    return _serializer().dumps({'u': utilizador, 'p': perfil})


def ler_token(token: str) -> Optional[Dict]:
    try:
        return _serializer().loads(token, max_age=current_app.config.get('TOKEN_MAX_AGE'))
    except SignatureExpired:
        logger.info("Token expirado.")
        return None
    except BadSignature:
        logger.warning("Token com assinatura inválida.")
        return None


def _token_do_pedido() -> Optional[str]:
    cabecalho = request.headers.get('Authorization', '')
    if cabecalho.startswith('Bearer '):
        return cabecalho[len('Bearer '):].strip()
    return None


def dados_autenticacao() -> Optional[Dict]:
    """
    Token do cabeçalho Authorization ou, em browsers, da sessão.
    Pedidos autenticados por cookie que alteram dados passam pelo CSRF.
    """
    token = _token_do_pedido()
    if token is None:
        token = session.get('auth_token')
        if token and request.method not in ('GET', 'HEAD', 'OPTIONS') \
                and current_app.config.get('WTF_CSRF_ENABLED', True):
            csrf.protect()
    if not token:
        return None
    return ler_token(token)


def perfil_local(nome: Optional[str]) -> str:
    return (nome or '').strip() or UTILIZADOR_PADRAO


def definir_password_local(password: str) -> str:
    return generate_password_hash(password)


def verificar_password_local(hash_guardado: Optional[str], password: str) -> bool:
    if not hash_guardado or not password:
        return False
    try:
        return check_password_hash(hash_guardado, password)
    except ValueError:
        # Hash num formato desconhecido (ex.: password antiga em texto simples)
        return hmac.compare_digest(hash_guardado.encode(), password.encode())


def _nao_autenticado():
    return jsonify({'error': 'Sessão expirada. Faça login novamente.'}), 401


def acesso_global_obrigatorio(f):
    """Basta o primeiro nível (credenciais globais)."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        dados = dados_autenticacao()
        if not dados:
            return _nao_autenticado()
        g.utilizador = dados['u']
        return f(*args, **kwargs)
    return wrapper


def login_obrigatorio(f):
    """Exige token completo (perfil local desbloqueado); define g.perfil."""
    @wraps(f)
    def wrapper(*args, **kwargs):
        dados = dados_autenticacao()
        if not dados or not dados.get('p'):
            return _nao_autenticado()
        g.utilizador = dados['u']
        g.perfil = dados['p']
        return f(*args, **kwargs)
    return wrapper
