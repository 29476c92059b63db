"""
Módulo de Autenticação (Blueprint)

Login global, desbloqueio do perfil local e logout.
"""

from flask import Blueprint

auth_bp = Blueprint('auth_bp', __name__, url_prefix='/api/auth')

# Importa as rotas no final para evitar dependência circular
from . import routes
