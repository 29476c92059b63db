"""
Módulo de Persistência na Cloud (Google Firestore)

Um documento por utilizador na coleção configurada (FIRESTORE_COLLECTION),
com o estado completo da aplicação em 'data'. Escrita sempre do documento
inteiro: a última gravação ganha.
"""

from typing import Dict, Optional

from flask import current_app
from google.cloud import firestore

from edutrocado.core.logger import get_logger

logger = get_logger(__name__)

_cliente = None


def get_db() -> firestore.Client:
    """
    Cliente do Firestore criado na primeira utilização.
    As credenciais vêm de GOOGLE_APPLICATION_CREDENTIALS (definida no .env).
    """
    global _cliente
    if _cliente is None:
        _cliente = firestore.Client(project=current_app.config.get('GOOGLE_CLOUD_PROJECT'))
        logger.info("Conexão com o Firestore estabelecida com sucesso.")
    return _cliente


def _documento(user_id: str):
    colecao = current_app.config.get('FIRESTORE_COLLECTION', 'registos')
    return get_db().collection(colecao).document(user_id)


def obter_dados(user_id: str) -> Optional[Dict]:
    """Estado guardado do utilizador, ou None se ainda não existir."""
    doc = _documento(user_id).get()
    if not doc.exists:
        return None
    return (doc.to_dict() or {}).get('data')


def guardar_dados(user_id: str, estado: Dict) -> None:
    _documento(user_id).set({
        'data': estado,
        'updated_at': firestore.SERVER_TIMESTAMP,
    })
    logger.info(f"Estado sincronizado na cloud: {user_id}")
