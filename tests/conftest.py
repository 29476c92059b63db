import os

# Config() falha sem estas variáveis (fail fast); definidas antes do import
os.environ.setdefault('SECRET_KEY', 'chave-de-teste')
os.environ.setdefault('APP_USER', 'professor')
os.environ.setdefault('APP_PASSWORD', 'segredo-global')

import pytest

from config import Config
from edutrocado import create_app
from edutrocado.core.sincronizacao import EXTENSAO_SESSOES, RegistoSessoes, SessaoProfessor


class ConfigTeste(Config):
    TESTING = True
    RATELIMIT_ENABLED = False
    WTF_CSRF_ENABLED = False
    GCS_BUCKET_NAME = 'bucket-teste'


class CloudFalsa:
    """Firestore em memória."""

    def __init__(self):
        self.documentos = {}
        self.gravacoes = 0

    def ler(self, user_id):
        return self.documentos.get(user_id)

    def gravar(self, user_id, estado):
        self.gravacoes += 1
        self.documentos[user_id] = estado


@pytest.fixture
def cloud():
    return CloudFalsa()


@pytest.fixture
def app(cloud):
    app = create_app(ConfigTeste)
    # Atraso longo: nos testes a gravação só acontece ao descarregar
    app.extensions[EXTENSAO_SESSOES] = RegistoSessoes(
        lambda user_id: SessaoProfessor(user_id, atraso=60,
                                        ler_cloud=cloud.ler, gravar_cloud=cloud.gravar)
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_headers(client):
    """Login global + desbloqueio do perfil local; devolve o cabeçalho Bearer."""
    resposta = client.post('/api/auth/login', json={'user': 'professor', 'password': 'segredo-global'})
    token_global = resposta.get_json()['token']

    resposta = client.post(
        '/api/auth/local',
        json={'userName': 'prof_teste', 'password': '1234'},
        headers={'Authorization': f'Bearer {token_global}'},
    )
    return {'Authorization': f"Bearer {resposta.get_json()['token']}"}
