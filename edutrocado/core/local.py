"""
Módulo de Persistência Local

Cópia do estado em disco, um ficheiro JSON por utilizador. É gravada a cada
alteração, antes da sincronização com a cloud, e lida ao abrir a sessão:
com a cloud em baixo, o professor não perde o que fez.
"""

import json
import os
from typing import Dict, Optional

from werkzeug.utils import secure_filename

from edutrocado.core.logger import get_logger

logger = get_logger(__name__)


def caminho(pasta: str, user_id: str) -> str:
    nome = secure_filename(user_id) or 'utilizador'
    return os.path.join(pasta, f"{nome}.json")


def obter_dados(pasta: str, user_id: str) -> Optional[Dict]:
    """Estado local do utilizador, ou None se não existir (ou estiver ilegível)."""
    ficheiro = caminho(pasta, user_id)
    if not os.path.exists(ficheiro):
        return None
    try:
        with open(ficheiro, encoding='utf-8') as f:
            return json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cópia local ilegível ({ficheiro}): {e}")
        return None


def guardar_dados(pasta: str, user_id: str, estado: Dict) -> None:
    os.makedirs(pasta, exist_ok=True)
    ficheiro = caminho(pasta, user_id)
    temporario = f"{ficheiro}.tmp"
    with open(temporario, 'w', encoding='utf-8') as f:
        json.dump(estado, f, ensure_ascii=False)
    # Substituição atómica: nunca fica um ficheiro a meio
    os.replace(temporario, ficheiro)
