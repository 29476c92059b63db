"""
Módulo de Turmas (Blueprint)

API JSON do caderno do professor: turmas, alunos, aulas, avaliações,
medidas, relatórios, desfazer/refazer e backup.
"""

from flask import Blueprint

turmas_bp = Blueprint('turmas_bp', __name__, url_prefix='/api')

from . import routes
