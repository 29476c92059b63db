"""
Módulo de Logging Centralizado.

Todos os módulos obtêm o logger por aqui, com o mesmo formato e saída
para stdout (padrão para containers / Cloud Run).
"""

import logging
import os
import sys

FORMATO_LOG = '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'


def get_logger(name: str) -> logging.Logger:
    """
    Devolve o logger do módulo, configurando-o na primeira utilização.

    Args:
        name (str): Nome do módulo que regista (normalmente __name__).

    Returns:
        logging.Logger: Logger com handler de stdout.
    """
    logger = logging.getLogger(name)

    # Um único handler por logger, mesmo com imports repetidos
    if not logger.handlers:
        nivel = os.environ.get('LOG_LEVEL', 'INFO').upper()
        logger.setLevel(getattr(logging, nivel, logging.INFO))

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(FORMATO_LOG))
        logger.addHandler(handler)

    return logger
