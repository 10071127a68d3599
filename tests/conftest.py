import os
import tempfile

# gyansetu.main builds a default app at import; keep it off the working directory
_scratch = tempfile.mkdtemp(prefix="gyansetu-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_scratch}/default.db")
os.environ.setdefault("DOCUMENTS_DIR", f"{_scratch}/documents")

import pytest
from fastapi.testclient import TestClient
from gyansetu.config import Settings
from gyansetu.main import create_app

ADMIN_EMAIL = "admin@gyansetu.test"
ADMIN_PASSWORD = "admin-pass"
STUDENT_PASSWORD = "student-pass"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite:///{tmp_path / 'portal.db'}",
        STORAGE_BACKEND="local",
        DOCUMENTS_DIR=tmp_path / "documents",
        ADMIN_EMAIL=ADMIN_EMAIL,
        ADMIN_PASSWORD=ADMIN_PASSWORD,
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def admin_client(app):
    client = TestClient(app)
    response = client.post("/auth/login", json={
        "email": ADMIN_EMAIL, "password": ADMIN_PASSWORD, "expectedRole": "admin"
    })
    assert response.status_code == 200
    return client


@pytest.fixture
def make_student(app):
    """Register a student account and return a client logged in as them"""
    def _make(email="asha@example.com", name="Asha Roy"):
        client = TestClient(app)
        response = client.post("/auth/register", json={
            "name": name, "email": email, "password": STUDENT_PASSWORD, "role": "user"
        })
        assert response.status_code == 201
        response = client.post("/auth/login", json={"email": email, "password": STUDENT_PASSWORD})
        assert response.status_code == 200
        return client
    return _make


@pytest.fixture
def student_client(make_student):
    return make_student()


@pytest.fixture
def pay():
    """Run the mock checkout and return the payment proof the form submits"""
    def _pay(client, payment_id="pay_Abc123XYZ789"):
        order = client.post("/payment/create-order", json={"amount": 19900}).json()
        signature = f"dummy-sign-{order['orderId']}-{payment_id}"
        verified = client.post("/payment/verify", json={
            "orderId": order["orderId"], "paymentId": payment_id, "signature": signature
        })
        assert verified.status_code == 200
        return {
            "status": "success",
            "transactionId": verified.json()["transactionId"],
            "orderId": order["orderId"],
            "paymentId": payment_id,
        }
    return _pay


@pytest.fixture
def application_form():
    return {
        "fullName": "Asha Roy",
        "phone": "9876543210",
        "email": "asha@example.com",
        "dateOfBirth": "2008-04-12",
        "address": "12 Lake Road, Kolkata",
        "schoolName": "Kendriya Vidyalaya",
        "board": "CBSE",
        "className": "10",
    }
