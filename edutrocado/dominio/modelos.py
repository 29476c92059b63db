"""
Esquemas das respostas da IA e do backup.

Cada extração tem duas faces: o esquema JSON enviado ao Gemini
(response_schema) e o modelo pydantic que valida o que volta.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from edutrocado.core.constants import TIPOS_MEDIDA


# === MODELOS DE VALIDAÇÃO ===

class AlunoExtraido(BaseModel):
    name: str
    studentNumber: Optional[str] = None
    box_2d: List[float] = Field(default_factory=list)

    @field_validator('studentNumber', mode='before')
    @classmethod
    def _numero_como_texto(cls, v):
        return None if v is None else str(v)


class RespostaAlunos(BaseModel):
    students: List[AlunoExtraido]


class NotaExtraida(BaseModel):
    studentName: str
    grade: float


class AvaliacaoExtraida(BaseModel):
    name: str
    date: str
    grades: List[NotaExtraida]


class RespostaNotas(BaseModel):
    assessments: List[AvaliacaoExtraida] = Field(default_factory=list)


class MedidaExtraida(BaseModel):
    date: str
    type: Literal[TIPOS_MEDIDA]
    description: str


class ResultadoMedidas(BaseModel):
    studentName: str
    measures: List[MedidaExtraida] = Field(default_factory=list)


class RespostaMedidas(BaseModel):
    results: List[ResultadoMedidas] = Field(default_factory=list)


class TempoExtraido(BaseModel):
    dayOfWeek: int = Field(ge=0, le=6)
    startTime: str = Field(pattern=r'^\d{1,2}:\d{2}$')
    endTime: str = Field(pattern=r'^\d{1,2}:\d{2}$')


class RespostaHorario(BaseModel):
    schedule: List[TempoExtraido] = Field(default_factory=list)


class IntervaloDatas(BaseModel):
    name: str
    startDate: str
    endDate: str


class CalendarioEscolar(BaseModel):
    yearStart: str
    yearEnd: str
    holidays: List[IntervaloDatas] = Field(default_factory=list)
    terms: List[IntervaloDatas] = Field(default_factory=list)


class EntradaHorario(BaseModel):
    dayOfWeek: int = Field(ge=0, le=6)
    startTime: str = Field(pattern=r'^\d{2}:\d{2}$')
    endTime: Optional[str] = Field(default=None, pattern=r'^\d{2}:\d{2}$')
    duration: Optional[int] = Field(default=None, gt=0)


class Horario(BaseModel):
    schedule: List[EntradaHorario]

    @field_validator('schedule')
    @classmethod
    def tempos_unicos(cls, v: List[EntradaHorario]) -> List[EntradaHorario]:
        chaves = [(e.dayOfWeek, e.startTime) for e in v]
        if len(chaves) != len(set(chaves)):
            raise ValueError('tempos repetidos no horário (mesmo dia e hora de início)')
        return v


class RegistoPresenca(BaseModel):
    studentId: str
    status: Literal['Presente', 'Ausente', 'Atraso'] = 'Presente'
    participation: int = Field(default=0, ge=0, le=5)
    tpc: int = Field(default=0, ge=0, le=5)
    occurrence: str = ''


class Registos(BaseModel):
    records: List[RegistoPresenca]


class EstadoBackup(BaseModel):
    """Validação mínima de um backup: precisa da lista de turmas."""
    model_config = ConfigDict(extra='allow')

    classes: List[Dict[str, Any]]
    config: Optional[Dict[str, Any]] = None


# === ESQUEMAS ENVIADOS AO GEMINI ===

def _objeto(propriedades: Dict, obrigatorios: List[str]) -> Dict:
    return {'type': 'OBJECT', 'properties': propriedades, 'required': obrigatorios}


def _lista(itens: Dict) -> Dict:
    return {'type': 'ARRAY', 'items': itens}


_TEXTO = {'type': 'STRING'}
_NUMERO = {'type': 'NUMBER'}

_INTERVALO = _objeto({'name': _TEXTO, 'startDate': _TEXTO, 'endDate': _TEXTO},
                     ['name', 'startDate', 'endDate'])

ESQUEMA_ALUNOS = _objeto({
    'students': _lista(_objeto(
        {'name': _TEXTO, 'studentNumber': _TEXTO, 'box_2d': _lista(_NUMERO)},
        ['name', 'box_2d', 'studentNumber'],
    )),
}, ['students'])

ESQUEMA_NOTAS = _objeto({
    'assessments': _lista(_objeto({
        'name': _TEXTO,
        'date': _TEXTO,
        'grades': _lista(_objeto({'studentName': _TEXTO, 'grade': _NUMERO},
                                 ['studentName', 'grade'])),
    }, ['name', 'date', 'grades'])),
}, ['assessments'])

ESQUEMA_MEDIDAS = _objeto({
    'results': _lista(_objeto({
        'studentName': _TEXTO,
        'measures': _lista(_objeto(
            {'date': _TEXTO, 'type': {'type': 'STRING', 'enum': list(TIPOS_MEDIDA)}, 'description': _TEXTO},
            ['date', 'type', 'description'],
        )),
    }, ['studentName', 'measures'])),
}, ['results'])

ESQUEMA_HORARIO = _objeto({
    'schedule': _lista(_objeto(
        {'dayOfWeek': {'type': 'INTEGER'}, 'startTime': _TEXTO, 'endTime': _TEXTO},
        ['dayOfWeek', 'startTime', 'endTime'],
    )),
}, ['schedule'])

ESQUEMA_CALENDARIO = _objeto({
    'yearStart': _TEXTO,
    'yearEnd': _TEXTO,
    'holidays': _lista(_INTERVALO),
    'terms': _lista(_INTERVALO),
}, ['yearStart', 'yearEnd'])
