import os

import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture(scope="session")
def api_client():
    with TestClient(app, base_url=os.getenv("BACKEND_BASE_URL", "http://testserver")) as client:
        yield client


@pytest.fixture
def sample_treatments():
    return [
        {
            "id": 1,
            "date": "2024-01-10T00:00:00Z",
            "type": "Tambal Gigi",
            "description": "tambal gigi 14",
            "teeth": [14],
        },
        {
            "id": 2,
            "date": "2024-03-05T00:00:00Z",
            "type": "Pencabutan Gigi",
            "description": "cabut gigi 14 dan 15",
            "teeth": [14, 15],
        },
        {
            "id": 3,
            "date": "2023-06-01T00:00:00Z",
            "type": "Scaling",
            "description": "pembersihan karang gigi",
            "teeth": [],
        },
    ]
