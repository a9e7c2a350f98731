import logging
import os
from dotenv import load_dotenv

# Carica automaticamente variabili da .env se presente
load_dotenv()

logger = logging.getLogger(__name__)

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))
INSTANCE_DIR = os.path.join(BASE_DIR, 'instance')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY', 'dev-cambia-questa-chiave')

    # Local database.  Besides being the default checklist store (see
    # ``STORE_BACKEND``) it is where ``bootstrap.py`` creates the tables.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + os.path.join(INSTANCE_DIR, 'officina.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ``sql`` (local database), ``memory`` or ``firebase`` (hosted
    # realtime database, needs FIREBASE_DATABASE_URL and optionally a
    # service account file in FIREBASE_CREDENTIALS).
    STORE_BACKEND = os.environ.get('STORE_BACKEND', 'sql')
    FIREBASE_DATABASE_URL = os.environ.get('FIREBASE_DATABASE_URL')
    FIREBASE_CREDENTIALS = os.environ.get('FIREBASE_CREDENTIALS')

    # Quiet period before a note edit is written.
    NOTE_DEBOUNCE_SECONDS = float(os.environ.get('NOTE_DEBOUNCE_SECONDS', '1.0'))
    # Delay the UI waits after switching tab before moving the focus.
    TAB_FOCUS_DELAY_MS = int(os.environ.get('TAB_FOCUS_DELAY_MS', '100'))
    # Open checklists unused for this long are closed.
    SESSION_IDLE_SECONDS = float(os.environ.get('SESSION_IDLE_SECONDS', '1800'))

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    STORE_BACKEND = 'memory'
    NOTE_DEBOUNCE_SECONDS = 0.05
    LOG_LEVEL = 'DEBUG'


DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 5000


def read_server_config(path):
    """Return ``(host, port)`` from a one-line ``host[:porta]`` file.

    Defaults to ``127.0.0.1:5000``; a missing or unreadable file, or a
    non-numeric port, keeps the default for that part.
    """
    host, port = DEFAULT_HOST, DEFAULT_PORT
    if not os.path.exists(path):
        return host, port
    try:
        with open(path, 'r', encoding='utf-8') as f:
            line = f.read().strip()
    except OSError as exc:
        logger.warning("Impossibile leggere %s: %s", path, exc)
        return host, port
    host_part, _, port_part = line.partition(':')
    host = host_part.strip() or host
    if port_part.strip():
        try:
            port = int(port_part.strip())
        except ValueError:
            logger.warning("Porta non valida in %s: %r", path, port_part)
    return host, port
