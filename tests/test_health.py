"""
Health endpoint tests.
"""

from sqlalchemy.orm import Session

from test_fixtures import client, db_session
from app.config import settings


def test_health_check():
    response = client.get("/health-check")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["service"] == settings.app_name
    assert body["version"] == settings.app_version


def test_database_health(db_session: Session):
    response = client.get("/health/db")
    assert response.status_code == 200
    assert response.json() == {"database": "ok"}


def test_scheduler_disabled_in_tests():
    response = client.get("/health/scheduler")
    assert response.status_code == 200
    assert response.json() == {"enabled": False, "running": False, "jobs": []}
