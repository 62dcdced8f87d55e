# tests/conftest.py
import logging

import pytest

from personal_wiki.storage import MemoryWikiStorage
from personal_wiki.wiki_store import WikiStore

# Cheap hash settings so the suite does not spend its time in scrypt
FAST_HASH_METHOD = "pbkdf2:sha256:1000"
TEST_ORIGIN = "https://wiki.example"


@pytest.fixture
def log():
    return logging.getLogger("tests.personal_wiki")


@pytest.fixture
def storage():
    return MemoryWikiStorage()


@pytest.fixture
def store(storage, log):
    return WikiStore(storage=storage, log=log, hash_method=FAST_HASH_METHOD)


@pytest.fixture
def make_app(tmp_path, storage):
    """Builds Flask apps wired to the in-memory storage, rate limiting off unless overridden."""
    from wiki_app import PersonalWiki

    built = []

    def _make_app(**overrides):
        config_overrides = {
            "TESTING": True,
            "LOG_DIR": str(tmp_path / "logs"),
            "RATELIMIT_ENABLED": False,
            "PASSWORD_HASH_METHOD": FAST_HASH_METHOD,
            "CORS_ORIGIN": TEST_ORIGIN,
        }
        config_overrides.update(overrides)
        wiki = PersonalWiki(storage=storage, config_overrides=config_overrides)
        built.append(wiki.app)
        return wiki.app

    yield _make_app

    for app in built:
        for handler in app.logger.handlers:
            handler.close()


@pytest.fixture
def app(make_app):
    return make_app()


@pytest.fixture
def client(app):
    return app.test_client()
