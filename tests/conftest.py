from __future__ import annotations

import time

import pytest

from officina import create_app
from officina.config import TestingConfig
from officina.errors import StoreError
from officina.storage import STORE_EXTENSION_KEY, MemoryStore
from officina.storage.base import split_path


class FlakyStore(MemoryStore):
    """Memory store whose writes fail below the configured prefixes."""

    def __init__(self, initial=None, fail_prefixes=(), fail_reads=()):
        self.fail_prefixes = []
        self.fail_reads = []
        self.calls = []
        super().__init__(initial)
        self.fail_prefixes = [split_path(p) for p in fail_prefixes]
        self.fail_reads = [split_path(p) for p in fail_reads]
        self.calls = []

    @staticmethod
    def _matches(path, prefixes):
        segments = split_path(path)
        return any(segments[:len(prefix)] == prefix for prefix in prefixes)

    def read(self, path):
        if self._matches(path, self.fail_reads):
            raise StoreError("lettura simulata fallita", path)
        return super().read(path)

    def write(self, path, value):
        self.calls.append(('write', path, value))
        if self._matches(path, self.fail_prefixes):
            raise StoreError("scrittura simulata fallita", path)
        super().write(path, value)

    def update(self, path, fields):
        self.calls.append(('update', path, fields))
        if self._matches(path, self.fail_prefixes):
            raise StoreError("aggiornamento simulato fallito", path)
        super().update(path, fields)


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def flaky_store():
    return FlakyStore()


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    yield app
    app.extensions['officina.sessions'].close_all()


@pytest.fixture
def app_store(app):
    return app.extensions[STORE_EXTENSION_KEY]


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def two_sections():
    return {
        'olio': {'name': 'Olio', 'section': 'Motore', 'defaultState': 'DA FARE'},
        'pressione': {'name': 'Pressione', 'section': 'Pneumatici', 'defaultState': 'CONTROLLATO'},
    }


@pytest.fixture
def wait_for():
    return _wait_for
