import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine

from campustrades.db.config import enable_sqlite_foreign_keys, get_session
from campustrades.db.init import init_db
from campustrades.main import app
from campustrades.utils.metrics import metrics_collector
from factories import Market


@pytest.fixture
def engine(tmp_path):
    # a file database so view-model worker threads get their own connections
    engine = create_engine(
        f"sqlite:///{tmp_path / 'campustrades.db'}",
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def session_factory(engine):
    return lambda: Session(engine, expire_on_commit=False)


@pytest.fixture
def market(session):
    return Market(session)


@pytest.fixture
def alice(market):
    return market.profile("Alice Buyer", avatar_url="https://cdn.example/alice.png")


@pytest.fixture
def bob(market):
    return market.profile("Bob Seller")


@pytest.fixture
def carol(market):
    return market.profile("Carol Outsider")


@pytest.fixture(autouse=True)
def reset_metrics():
    metrics_collector.reset()
    yield


@pytest.fixture
def client(engine):
    def override_get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()
