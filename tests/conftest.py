from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from domain.engine import LedgerEngine
from tests.helpers.memory_gateway import MemoryGateway
from tests.helpers.time_utils import DEFAULT_TIME_GEN, TimeGenerator

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(autouse=True)
def _reset_default_time_gen() -> None:
    DEFAULT_TIME_GEN.reset()


@pytest.fixture(scope="function")
def clock() -> TimeGenerator:
    return DEFAULT_TIME_GEN


@pytest.fixture(scope="function")
def gateway() -> MemoryGateway:
    return MemoryGateway()


@pytest.fixture(scope="function")
def ledger(gateway: MemoryGateway, clock: TimeGenerator) -> LedgerEngine:
    return LedgerEngine(gateway=gateway, clock=clock)
