"""
Módulo de Configuração (Blindado)

Define a classe de configuração principal. Implementa o padrão 'Fail Fast':
se uma variável crítica estiver faltando, a aplicação nem inicia.
"""

import os
from dotenv import load_dotenv

# Carrega variáveis do arquivo .env
load_dotenv()


class Config:
    """
    Classe de configuração base da aplicação.
    """

    # === SEGURANÇA CRÍTICA (Fail Fast) ===
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("ERRO CRÍTICO: 'SECRET_KEY' não encontrada no .env. A aplicação não pode iniciar insegura.")

    # Credenciais globais de acesso (validadas apenas no servidor)
    APP_USER = os.environ.get('APP_USER')
    APP_PASSWORD = os.environ.get('APP_PASSWORD')

    if not APP_USER or not APP_PASSWORD:
        raise ValueError("ERRO CRÍTICO: Credenciais de acesso (APP_USER/APP_PASSWORD) ausentes.")

    # Validade do token de sessão (segundos)
    TOKEN_MAX_AGE = int(os.environ.get('TOKEN_MAX_AGE', 60 * 60 * 12))

    # === GOOGLE CLOUD (Firestore + Storage) ===
    GOOGLE_CLOUD_PROJECT = os.environ.get('GOOGLE_CLOUD_PROJECT')
    GCS_BUCKET_NAME = os.environ.get('GCS_BUCKET_NAME')
    FIRESTORE_COLLECTION = os.environ.get('FIRESTORE_COLLECTION', 'registos')

    if not GCS_BUCKET_NAME:
        print("AVISO: 'GCS_BUCKET_NAME' não configurado. Upload de fotos falhará.")

    # === IA (Gemini) ===
    GOOGLE_API_KEY = os.environ.get('GOOGLE_API_KEY')
    GEMINI_MODEL = os.environ.get('GEMINI_MODEL', 'gemini-2.5-flash')

    if not GOOGLE_API_KEY:
        print("AVISO: 'GOOGLE_API_KEY' ausente. A importação por IA não funcionará.")

    # === ESTADO E SINCRONIZAÇÃO ===
    SYNC_DEBOUNCE_SECONDS = float(os.environ.get('SYNC_DEBOUNCE_SECONDS', '1.0'))
    MAX_HISTORY = 20
    # Cópia local do estado (por omissão em instance/dados)
    LOCAL_DATA_DIR = os.environ.get('LOCAL_DATA_DIR')

    # === FLASK ===
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1')
    MAX_CONTENT_LENGTH = 16 * 1024 * 1024  # 16MB (PDFs digitalizados)
    RATELIMIT_ENABLED = True
