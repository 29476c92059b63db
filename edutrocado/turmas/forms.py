from wtforms import FloatField, IntegerField, SelectField, StringField
from wtforms.validators import DataRequired, Length, NumberRange, Optional, Regexp

from edutrocado.core.constants import TIPOS_MEDIDA
from edutrocado.core.forms import ApiForm

DATA_ISO = Regexp(r'^\d{4}-\d{2}-\d{2}$', message="Data no formato AAAA-MM-DD")
HORA = Regexp(r'^\d{2}:\d{2}$', message="Hora no formato HH:MM")


class TurmaForm(ApiForm):
    name = StringField('Nome', validators=[DataRequired(message="Indique o nome da turma"), Length(max=100)])
    defaultDuration = IntegerField('Duração', validators=[Optional(), NumberRange(min=1, max=600)])


class AlunoForm(ApiForm):
    name = StringField('Nome', validators=[DataRequired(message="Indique o nome do aluno"), Length(max=150)])
    studentNumber = StringField('Número', validators=[Optional(), Length(max=20)])
    email = StringField('Email', validators=[Optional(), Length(max=150)])
    birthDate = StringField('Nascimento', validators=[Optional(), DATA_ISO])
    notes = StringField('Notas', validators=[Optional(), Length(max=5000)])
    photo = StringField('Foto', validators=[Optional(), Length(max=1000)])


class AulaForm(ApiForm):
    date = StringField('Data', validators=[DataRequired(), DATA_ISO])
    time = StringField('Hora', validators=[Optional(), HORA])
    duration = IntegerField('Duração', validators=[Optional(), NumberRange(min=1, max=600)])
    description = StringField('Sumário', validators=[Optional(), Length(max=2000)])


class AvaliacaoForm(ApiForm):
    name = StringField('Nome', validators=[DataRequired(message="Indique o nome da avaliação"), Length(max=100)])
    date = StringField('Data', validators=[DataRequired(), DATA_ISO])
    weight = FloatField('Peso', validators=[Optional(), NumberRange(min=0)])


class NotaForm(ApiForm):
    # Vazio apaga a nota; o valor é normalizado no domínio
    value = StringField('Nota', validators=[Optional()])


class MedidaForm(ApiForm):
    date = StringField('Data', validators=[DataRequired(), DATA_ISO])
    type = SelectField('Tipo', choices=list(TIPOS_MEDIDA))
    description = StringField('Descrição', validators=[DataRequired(), Length(max=2000)])
