"""
Módulo Principal da Aplicação (Application Factory)
"""

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.middleware.proxy_fix import ProxyFix # Necessário atrás do proxy do Cloud Run
from config import Config

from .core.backup import ErroBackup
from .core.extensions import csrf, limiter
from .core.extracao import ErroExtracao
from .core.logger import get_logger
from .core.sincronizacao import EXTENSAO_SESSOES, criar_registo
from .core.storage import ErroUpload
from .dominio.calendario import InvalidCalendarError
from .dominio.estado import EntidadeNaoEncontrada

logger = get_logger(__name__)


def _registar_erros(app):
    """Erros de domínio -> respostas JSON (o estado nunca fica a meio)."""

    @app.errorhandler(EntidadeNaoEncontrada)
    def nao_encontrado(e):
        return jsonify({'error': str(e)}), 404

    @app.errorhandler(InvalidCalendarError)
    def calendario_invalido(e):
        return jsonify({'error': f"Calendário inválido: {e}"}), 400

    @app.errorhandler(ValidationError)
    def dados_invalidos(e):
        detalhes = e.errors(include_url=False, include_context=False, include_input=False)
        return jsonify({'error': 'Dados inválidos.', 'detalhes': detalhes}), 400

    @app.errorhandler(ErroBackup)
    def backup_invalido(e):
        return jsonify({'error': str(e)}), 400

    @app.errorhandler(ErroExtracao)
    def falha_ia(e):
        return jsonify({'error': f"Erro no processamento IA: {e}"}), 502

    @app.errorhandler(ErroUpload)
    def falha_upload(e):
        return jsonify({'error': str(e)}), 502


def create_app(config_class=Config):
    """
    Cria e configura uma instância da aplicação Flask.
    """

    app = Flask(__name__, instance_relative_config=True)

    # Cloud Run: URLs com 'https://' e IP real do cliente (rate limit)
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # 1. Carrega a configuração
    app.config.from_object(config_class)

    # 2. Extensões
    limiter.init_app(app)
    csrf.init_app(app)

    # 3. Sessões de professor (estado em memória + sincronização)
    app.extensions[EXTENSAO_SESSOES] = criar_registo(app)

    # 4. Blueprints (a API usa token; o CSRF só se aplica a pedidos por cookie)
    from .auth import auth_bp
    app.register_blueprint(auth_bp)
    csrf.exempt(auth_bp)

    from .turmas import turmas_bp
    app.register_blueprint(turmas_bp)
    csrf.exempt(turmas_bp)

    from .importacao import importacao_bp
    app.register_blueprint(importacao_bp)
    csrf.exempt(importacao_bp)

    _registar_erros(app)

    # 5. Rota de Health Check
    @app.route("/health")
    def health_check():
        return "Servidor EduTrocado no ar!", 200

    logger.info("Aplicação iniciada.")
    return app
