"""
Módulo de Leitura de Documentos

Responsável por:
1. Converter cada página de um PDF numa imagem JPEG (entrada do Gemini Vision).
2. Aceitar imagens diretas (fotografias de pautas).
3. Recortar fotografias de alunos a partir das coordenadas devolvidas pela IA.
"""

from io import BytesIO
from typing import Any, List, Optional, Tuple

import pdfplumber
from PIL import Image

from edutrocado.core.logger import get_logger

logger = get_logger(__name__)

# (bytes_da_imagem, mime_type)
Pagina = Tuple[bytes, str]


def _ler_bytes(arquivo_storage: Any) -> bytes:
    if isinstance(arquivo_storage, bytes):
        return arquivo_storage
    dados = arquivo_storage.read()
    if hasattr(arquivo_storage, 'seek'):
        arquivo_storage.seek(0)
    return dados


def e_pdf(dados: bytes) -> bool:
    return dados[:4] == b'%PDF'


def _para_jpeg(imagem: Image.Image, qualidade: int = 80) -> bytes:
    buffer = BytesIO()
    imagem.convert('RGB').save(buffer, format='JPEG', quality=qualidade)
    return buffer.getvalue()


def paginas_pdf_como_imagens(dados: bytes, resolucao: int = 180,
                             max_paginas: Optional[int] = None) -> List[Pagina]:
    """
    Renderiza as páginas do PDF com pdfplumber.
    PDF ilegível devolve lista vazia (o erro fica no log).
    """
    paginas: List[Pagina] = []
    try:
        with pdfplumber.open(BytesIO(dados)) as pdf:
            for page in pdf.pages[:max_paginas]:
                imagem = page.to_image(resolution=resolucao).original
                paginas.append((_para_jpeg(imagem), 'image/jpeg'))
    except Exception as e:
        logger.error(f"Erro no pdfplumber: {e}", exc_info=True)
        return []
    return paginas


def imagens_do_arquivo(arquivo_storage: Any, content_type: Optional[str] = None,
                       max_paginas: Optional[int] = None) -> List[Pagina]:
    """
    PDF -> uma imagem por página; imagem -> ela própria.
    O tipo é decidido pelo conteúdo (magic number), não pela extensão.
    """
    dados = _ler_bytes(arquivo_storage)
    if not dados:
        return []
    if e_pdf(dados):
        return paginas_pdf_como_imagens(dados, max_paginas=max_paginas)
    return [(dados, content_type or 'image/jpeg')]


def recortar_foto(imagem: bytes, box_2d: List[float]) -> Optional[bytes]:
    """
    Recorta a foto do aluno. box_2d = [ymin, xmin, ymax, xmax] em milésimos
    da página, como devolvido pelo Gemini.
    """
    if len(box_2d) != 4:
        return None
    ymin, xmin, ymax, xmax = box_2d
    try:
        with Image.open(BytesIO(imagem)) as pagina:
            largura, altura = pagina.size
            caixa = (
                int(xmin / 1000 * largura),
                int(ymin / 1000 * altura),
                int(xmax / 1000 * largura),
                int(ymax / 1000 * altura),
            )
            if caixa[2] <= caixa[0] or caixa[3] <= caixa[1]:
                return None
            return _para_jpeg(pagina.crop(caixa), qualidade=90)
    except Exception as e:
        logger.warning(f"Falha ao recortar foto ({e}).")
        return None
