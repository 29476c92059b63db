from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict


class ApiForm(FlaskForm):
    """Formulários alimentados por JSON; o CSRF é tratado na autenticação."""
    class Meta:
        csrf = False

        def wrap_formdata(self, form, formdata):
            dados = super().wrap_formdata(form, formdata)
            if dados is None or not request.is_json:
                return dados
            # null conta como campo ausente; o resto chega aos campos como texto
            return ImmutableMultiDict([
                (chave, valor if isinstance(valor, str) else str(valor))
                for chave, valor in dados.items(multi=True)
                if valor is not None
            ])

    def enviados(self) -> dict:
        """Só os campos que vieram no pedido (atualizações parciais)."""
        return {f.name: f.data for f in self if f.raw_data}
