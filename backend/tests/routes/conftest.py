"""Fixtures for the HTTP route tests."""

from fastapi.testclient import TestClient
import pytest

from courtbook.api.dependencies import get_db, get_lock_manager, get_notification_service
from courtbook.main import app
from courtbook.services.notification_service import NotificationService


@pytest.fixture
def client(session_factory, lock_manager, dispatcher):
    """Test client whose requests use the per-test database."""

    def override_get_db():
        session = session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_lock_manager] = lambda: lock_manager
    app.dependency_overrides[get_notification_service] = lambda: NotificationService(dispatcher)

    test_client = TestClient(app)
    yield test_client

    app.dependency_overrides.clear()
    test_client.close()
