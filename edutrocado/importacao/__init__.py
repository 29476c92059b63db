"""
Módulo de Importação por IA (Blueprint)

Pautas, relatórios de medidas, horários e calendários enviados em PDF ou
imagem são lidos pelo Gemini e fundidos no estado.
"""

from flask import Blueprint

importacao_bp = Blueprint('importacao_bp', __name__, url_prefix='/api')

from . import routes
