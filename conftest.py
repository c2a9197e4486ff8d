import base64
import io

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from presence.config import Settings
from presence.database import SQLStore
from presence.face_engine import MockFaceVerifier
from presence.main import create_app

ADMIN_SECRET = "test-admin-secret"


def _png_data_url(color=(200, 120, 80), size=(8, 8)):
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def make_image():
    """Factory for small solid-colour PNG data URLs."""
    return _png_data_url


@pytest.fixture
def face_image():
    return _png_data_url()


@pytest.fixture
def store():
    return SQLStore("sqlite://")


@pytest.fixture
def verifier():
    return MockFaceVerifier()


@pytest.fixture
def settings():
    return Settings(admin_secret=ADMIN_SECRET)


@pytest.fixture
def client(settings, store, verifier):
    return TestClient(create_app(settings, store=store, verifier=verifier))


def auth(token):
    return {"Authorization": f"Bearer {token}"}



STUDENT = {
    "email": "asha@example.com",
    "password": "secret123",
    "full_name": "Asha Rao",
    "roll_number": "CS-017",
    "department": "Computer Science",
    "year": "2",
}

TEACHER = {
    "email": "mehta@example.com",
    "password": "secret123",
    "full_name": "Prof. Mehta",
    "department": "Computer Science",
    "subject_details": [{"subject": "Databases"}],
}


@pytest.fixture
def student_token(client):
    assert client.post("/auth/signup/student", json=STUDENT).status_code == 201
    response = client.post("/auth/login", json={"email": STUDENT["email"], "password": STUDENT["password"]})
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture
def teacher_token(client):
    assert client.post("/auth/signup/teacher", json=TEACHER).status_code == 201
    response = client.post("/auth/login", json={"email": TEACHER["email"], "password": TEACHER["password"]})
    assert response.status_code == 200
    return response.json()["access_token"]


@pytest.fixture
def lecture(client, teacher_token):
    """A class and one lecture owned by the teacher."""
    klass = client.post(
        "/classes",
        json={"name": "DBMS", "department": "Computer Science", "year": "2"},
        headers=auth(teacher_token),
    ).json()
    return client.post(
        f"/classes/{klass['id']}/lectures",
        json={"title": "Normalization", "date": "2026-10-18"},
        headers=auth(teacher_token),
    ).json()
