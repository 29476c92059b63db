"""
Módulo de Integração com Google Cloud Storage (Service Layer)

Guarda fotografias de alunos e devolve o URL público.
"""

import uuid
from typing import Any

from flask import current_app
from google.cloud import storage

from edutrocado.core.logger import get_logger

logger = get_logger(__name__)


class ErroUpload(Exception):
    """Falha ao guardar o ficheiro na cloud."""


def _get_client() -> storage.Client:
    return storage.Client(project=current_app.config.get('GOOGLE_CLOUD_PROJECT'))


def nome_unico(nome_original: str) -> str:
    return f"{uuid.uuid4().hex}_{nome_original.replace(' ', '_')}"


def upload_file(arquivo_storage: Any, nome_original: str,
                content_type: str = 'image/jpeg') -> str:
    """
    Faz o upload (bytes ou file-like) e devolve o URL público do blob.

    Raises:
        ErroUpload: bucket não configurado ou falha no GCS.
    """
    bucket_name = current_app.config.get('GCS_BUCKET_NAME')
    if not bucket_name:
        raise ErroUpload("GCS_BUCKET_NAME não configurado")

    try:
        client = _get_client()
        bucket = client.bucket(bucket_name)
        blob = bucket.blob(nome_unico(nome_original))

        if isinstance(arquivo_storage, bytes):
            blob.upload_from_string(arquivo_storage, content_type=content_type)
        else:
            arquivo_storage.seek(0)
            blob.upload_from_file(arquivo_storage, content_type=content_type)

        blob.make_public()
        logger.info(f"Upload concluído: {blob.name}")
        return blob.public_url
    except Exception as e:
        logger.error(f"Erro no upload de '{nome_original}': {e}", exc_info=True)
        raise ErroUpload("Falha ao guardar imagem. Verifique a ligação.") from e
