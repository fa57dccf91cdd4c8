import pytest

from stash.app import App
from stash.audit import set_security_event_sink
from stash.config import AppConfig
from stash.service import create_app
from stash.store import Store

ADMIN_TOKEN = "s3cr3t"


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(admin_token=ADMIN_TOKEN)


@pytest.fixture
def app(config: AppConfig, store: Store) -> App:
    return create_app(config, store=store)


@pytest.fixture(autouse=True)
def _reset_security_sink():
    yield
    set_security_event_sink(None)
