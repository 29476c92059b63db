"""
Extração estruturada com IA (Gemini Vision).

Recebe a imagem de uma página (pauta, horário, relatório de medidas),
uma instrução e o esquema JSON pretendido; devolve o JSON já validado
pelo modelo pydantic correspondente.
"""

import json
from typing import Dict, Type, TypeVar

from pydantic import BaseModel, ValidationError

from edutrocado.core.ai import get_generative_model
from edutrocado.core.logger import get_logger

logger = get_logger(__name__)

M = TypeVar('M', bound=BaseModel)


class ErroExtracao(Exception):
    """A IA falhou ou devolveu algo fora do esquema."""


def _limpar_resposta(texto: str) -> str:
    # Alguns modelos devolvem ```json ... ``` mesmo com response_mime_type
    texto = (texto or '').strip()
    if texto.startswith("```"):
        texto = texto.strip("`").strip()
        if texto.lower().startswith("json"):
            texto = texto[4:]
    return texto.strip()


def extrair_json(imagem: bytes, instrucao: str, esquema: Dict,
                 mime_type: str = 'image/jpeg') -> Dict:
    """
    Envia imagem + instrução ao Gemini e devolve o JSON da resposta.

    Raises:
        ErroExtracao: falha na chamada ou resposta que não é JSON.
    """
    try:
        model = get_generative_model()
        response = model.generate_content(
            [{'mime_type': mime_type, 'data': imagem}, instrucao],
            generation_config={
                'response_mime_type': 'application/json',
                'response_schema': esquema,
            },
        )
        return json.loads(_limpar_resposta(response.text))
    except json.JSONDecodeError as e:
        logger.warning(f"Resposta da IA não é JSON válido: {e}")
        raise ErroExtracao("A IA devolveu uma resposta ilegível.") from e
    except Exception as e:
        logger.error(f"Erro na extração por IA: {e}", exc_info=True)
        raise ErroExtracao("Falha na comunicação com a IA.") from e


def extrair_validado(imagem: bytes, instrucao: str, esquema: Dict,
                     modelo: Type[M], mime_type: str = 'image/jpeg') -> M:
    """Como extrair_json, mas valida a resposta contra o modelo pydantic."""
    dados = extrair_json(imagem, instrucao, esquema, mime_type)
    try:
        return modelo.model_validate(dados)
    except ValidationError as e:
        logger.warning(f"Resposta da IA fora do esquema {modelo.__name__}: {e}")
        raise ErroExtracao("A resposta da IA não tem o formato esperado.") from e
