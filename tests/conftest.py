import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from khata.main import app
from khata.db.session import get_store
from khata.repositories.memory_repo import InMemoryDebtStore
from khata.services.allocation_service import AllocationService
from khata.services.debt_service import DebtService
from khata.services.payment_service import PaymentService
from khata.services.report_service import ReportService


@pytest.fixture
def store():
    """Fresh in-process debt store per test."""
    return InMemoryDebtStore()


@pytest.fixture
def debt_service(store):
    return DebtService(store)


@pytest.fixture
def payment_service(store):
    return PaymentService(store)


@pytest.fixture
def allocation_service(store):
    return AllocationService(store)


@pytest.fixture
def report_service(store):
    return ReportService(store)


@pytest.fixture
def mock_collection():
    """Motor collection with every call mocked."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.find_one_and_replace = AsyncMock()
    collection.count_documents = AsyncMock()
    collection.delete_one = AsyncMock()
    collection.delete_many = AsyncMock()
    return collection


@pytest.fixture
def test_client(store):
    """FastAPI test client wired to the in-process store (no MongoDB)."""
    app.dependency_overrides[get_store] = lambda: store
    # Not entered as a context manager, so the Mongo lifespan never runs
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()
