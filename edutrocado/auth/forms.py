from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Length, Optional

from edutrocado.core.forms import ApiForm


class LoginForm(ApiForm):
    # API JSON; a proteção CSRF é aplicada por cookie de sessão
    user = StringField('Utilizador', validators=[DataRequired(message="Preencha o utilizador")])
    password = PasswordField('Password', validators=[DataRequired(message="Preencha a password")])


class DesbloqueioLocalForm(ApiForm):
    """
    Acesso ao perfil local. Se o perfil ainda não tiver password,
    a que for enviada passa a ser a password (configuração inicial).
    """
    userName = StringField('Nome', validators=[Optional(), Length(max=100)])
    password = PasswordField('Password', validators=[
        DataRequired(message="Preencha a password"),
        Length(min=4, max=128, message="A password deve ter entre 4 e 128 caracteres"),
    ])
