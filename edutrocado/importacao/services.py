"""
Camada de Serviço (Service Layer) da Importação

Ficheiro -> páginas (imagens) -> Gemini -> resposta validada.
Nenhuma função aqui altera o estado; isso fica para as rotas.
"""

from datetime import date
from typing import Any, Callable, Dict, List, Optional

from edutrocado.core import parser, storage
from edutrocado.core.extracao import ErroExtracao, extrair_validado
from edutrocado.core.logger import get_logger
from edutrocado.dominio.geracao import novo_id
from edutrocado.dominio.modelos import (
    ESQUEMA_ALUNOS,
    ESQUEMA_CALENDARIO,
    ESQUEMA_HORARIO,
    ESQUEMA_MEDIDAS,
    ESQUEMA_NOTAS,
    CalendarioEscolar,
    RespostaAlunos,
    RespostaHorario,
    RespostaMedidas,
    RespostaNotas,
)

logger = get_logger(__name__)

DOMINIO_EMAIL_ALUNOS = 'alunos.ribadouro.com'

# === INSTRUÇÕES PARA O GEMINI ===

PROMPT_ALUNOS = (
    "Identifica os alunos na pauta. Extrai Nome, Número de aluno (4+ dígitos) "
    "e coordenadas da foto [ymin, xmin, ymax, xmax]. Retorna JSON."
)

PROMPT_NOTAS = (
    "Analise esta pauta. Retorne JSON: "
    "{ assessments: [{ name, date, grades: [{ studentName, grade }] }] }."
)

PROMPT_HORARIO = (
    "Extrai os tempos letivos de MATEMÁTICA. "
    "Retorna JSON: { schedule: [{dayOfWeek, startTime, endTime}] }. "
    "dayOfWeek: 0 = Domingo, 1 = Segunda-feira, ..., 6 = Sábado."
)

PROMPT_CALENDARIO = (
    "Extrai yearStart, yearEnd, holidays e terms (name, startDate, endDate), "
    "com datas no formato YYYY-MM-DD. Retorna JSON."
)


def prompt_medidas(hoje: Optional[date] = None) -> str:
    hoje = hoje or date.today()
    return f"""Analise este documento e extraia Medidas de Suporte à Aprendizagem (DL 54/2018).
Para cada aluno, extraia:
1. Nome completo (exatamente como aparece).
2. Lista de medidas:
   - date (YYYY-MM-DD, hoje se omitido: {hoje.isoformat()}).
   - type (Universal, Seletiva, Adicional, Adaptação).
   - description (Texto detalhado).
Retorne JSON."""


def _paginas(arquivo: Any, max_paginas: Optional[int] = None) -> List[parser.Pagina]:
    paginas = parser.imagens_do_arquivo(arquivo, getattr(arquivo, 'mimetype', None), max_paginas)
    if not paginas:
        raise ErroExtracao("Não foi possível ler o ficheiro.")
    return paginas


def email_aluno(numero: Optional[str]) -> Optional[str]:
    return f"ac{numero}@{DOMINIO_EMAIL_ALUNOS}" if numero else None


# === EXTRAÇÕES ===

def extrair_alunos(arquivo: Any, upload: Optional[Callable[..., str]] = None) -> List[Dict]:
    """
    Lê todas as páginas da pauta fotográfica. A foto de cada aluno é
    recortada da página e enviada para o Storage.

    Raises:
        ErroExtracao: ficheiro ilegível ou resposta inválida.
        ErroUpload: falha no envio de uma foto (nada é importado).
    """
    upload = upload or storage.upload_file
    alunos = []
    for imagem, mime_type in _paginas(arquivo):
        resposta = extrair_validado(imagem, PROMPT_ALUNOS, ESQUEMA_ALUNOS, RespostaAlunos, mime_type)
        for extraido in resposta.students:
            aluno = {'id': novo_id(), 'name': extraido.name.strip()}
            if extraido.studentNumber:
                aluno['studentNumber'] = extraido.studentNumber
                aluno['email'] = email_aluno(extraido.studentNumber)

            foto = parser.recortar_foto(imagem, extraido.box_2d)
            if foto:
                nome = f"student_{extraido.studentNumber or novo_id()}.jpg"
                aluno['photo'] = upload(foto, nome, 'image/jpeg')
            alunos.append(aluno)

    logger.info(f"Importação de alunos: {len(alunos)} encontrados.")
    return alunos


def extrair_notas(arquivo: Any) -> RespostaNotas:
    avaliacoes = []
    for imagem, mime_type in _paginas(arquivo):
        resposta = extrair_validado(imagem, PROMPT_NOTAS, ESQUEMA_NOTAS, RespostaNotas, mime_type)
        avaliacoes.extend(resposta.assessments)
    return RespostaNotas(assessments=avaliacoes)


def extrair_medidas(arquivo: Any, hoje: Optional[date] = None) -> RespostaMedidas:
    resultados = []
    instrucao = prompt_medidas(hoje)
    for imagem, mime_type in _paginas(arquivo):
        resposta = extrair_validado(imagem, instrucao, ESQUEMA_MEDIDAS, RespostaMedidas, mime_type)
        resultados.extend(resposta.results)
    return RespostaMedidas(results=resultados)


def extrair_horario(arquivo: Any) -> RespostaHorario:
    # O horário vem numa só página
    imagem, mime_type = _paginas(arquivo, max_paginas=1)[0]
    return extrair_validado(imagem, PROMPT_HORARIO, ESQUEMA_HORARIO, RespostaHorario, mime_type)


def extrair_calendario(arquivo: Any) -> CalendarioEscolar:
    imagem, mime_type = _paginas(arquivo, max_paginas=1)[0]
    return extrair_validado(imagem, PROMPT_CALENDARIO, ESQUEMA_CALENDARIO, CalendarioEscolar, mime_type)
