# backend/tests/routes/conftest.py
import pytest
from fastapi.testclient import TestClient

from salon_booking.api.dependencies.database import get_db
from salon_booking.main import create_app


@pytest.fixture
def client(session_factory):
    app = create_app()

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
    return TestClient(app)
