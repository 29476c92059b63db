"""
Backup manual: arquivo ZIP com um único 'backup_data.json'.
"""

import io
import json
import zipfile
from typing import Any, Dict

from pydantic import ValidationError

from edutrocado.core.logger import get_logger
from edutrocado.dominio.modelos import EstadoBackup

logger = get_logger(__name__)

NOME_JSON = 'backup_data.json'


class ErroBackup(Exception):
    """Ficheiro de backup corrompido ou sem o formato esperado."""


def exportar_backup(estado: Dict) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
        zf.writestr(NOME_JSON, json.dumps(estado, ensure_ascii=False, indent=2))
    return buffer.getvalue()


def importar_backup(arquivo_storage: Any) -> Dict:
    """
    Lê e valida o backup. Só devolve o estado se estiver completo;
    qualquer falha levanta ErroBackup e o estado atual fica intacto.
    """
    dados = arquivo_storage if isinstance(arquivo_storage, bytes) else arquivo_storage.read()

    try:
        with zipfile.ZipFile(io.BytesIO(dados)) as zf:
            if NOME_JSON not in zf.namelist():
                raise ErroBackup("Ficheiro inválido.")
            conteudo = zf.read(NOME_JSON).decode('utf-8')
    except (zipfile.BadZipFile, UnicodeDecodeError) as e:
        logger.warning(f"Backup rejeitado (ZIP inválido): {e}")
        raise ErroBackup("Ficheiro inválido.") from e

    try:
        estado = json.loads(conteudo)
        EstadoBackup.model_validate(estado)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Backup rejeitado (JSON inválido): {e}")
        raise ErroBackup("O backup não contém dados válidos.") from e

    return estado
