# tests/conftest.py

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from barbershop.config import Settings
from barbershop.db import init_db, make_engine
from barbershop.deps import Container, get_container
from barbershop.main import app

# Monday 2030-06-03, 08:00 shop time
NOW = datetime(2030, 6, 3, 8, 0)


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        ENVIRONMENT="test",
        TIMEZONE="America/New_York",
        HOURS_START=9,
        HOURS_END=23,
        CANCELLATION_WINDOW_HOURS=4,
        WEEKLY_BATCH_SIZE=50,
    )


@pytest.fixture
def engine(settings):
    # one shared in-memory database for every session/thread of a test
    engine = make_engine(settings.DATABASE_URL, poolclass=StaticPool)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def container(settings, engine):
    return Container(settings, engine=engine, clock=lambda: NOW)


@pytest.fixture
def barber(container):
    return container.barbers.create_barber("Sweeney", "Todd")


@pytest.fixture
def other_barber(container):
    return container.barbers.create_barber("Figaro", "Almaviva")


@pytest.fixture
def user(container):
    return container.users.create_user("Nellie", "Lovett", "+14155550123")


@pytest.fixture
def client(container):
    app.dependency_overrides[get_container] = lambda: container
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
