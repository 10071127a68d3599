import pytest
from gyansetu.errors import ErrorKind, PortalError
from gyansetu.services.credential_service import CredentialService


@pytest.fixture
def db(app):
    session = app.state.session_factory()
    yield session
    session.close()


def test_register_normalizes_email_and_hashes_password(db):
    user = CredentialService.register(db, " Asha ", "  Asha@Example.COM ", "secret", "user", "Scholarship Program")
    assert user.email == "asha@example.com"
    assert user.name == "Asha"
    assert user.passwd != "secret"
    assert user.snapshot() == {
        "id": user.account_id,
        "name": "Asha",
        "email": "asha@example.com",
        "role": "user",
        "course": "Scholarship Program",
    }


@pytest.mark.parametrize("name,email,password", [
    ("", "a@example.com", "pw"),
    ("A", "   ", "pw"),
    ("A", "a@example.com", ""),
])
def test_register_requires_fields(db, name, email, password):
    with pytest.raises(PortalError) as exc:
        CredentialService.register(db, name, email, password)
    assert exc.value.kind == ErrorKind.VALIDATION_ERROR


def test_register_rejects_unknown_role(db):
    with pytest.raises(PortalError) as exc:
        CredentialService.register(db, "A", "a@example.com", "pw", role="superuser")
    assert exc.value.kind == ErrorKind.VALIDATION_ERROR


def test_duplicate_email_is_case_insensitive(db):
    CredentialService.register(db, "A", "dup@example.com", "pw")
    with pytest.raises(PortalError) as exc:
        CredentialService.register(db, "B", "DUP@Example.com", "pw2")
    assert exc.value.kind == ErrorKind.CONFLICT


def test_authenticate(db):
    CredentialService.register(db, "A", "a@example.com", "pw")
    assert CredentialService.authenticate(db, "A@EXAMPLE.com", "pw").email == "a@example.com"

    for email, password in [("a@example.com", "wrong"), ("nobody@example.com", "pw"), ("a@example.com", "")]:
        with pytest.raises(PortalError) as exc:
            CredentialService.authenticate(db, email, password)
        assert exc.value.kind == ErrorKind.INVALID_CREDENTIALS
        assert exc.value.message == "Invalid Credentials"


def test_authenticate_expected_role(db):
    CredentialService.register(db, "A", "a@example.com", "pw")
    assert CredentialService.authenticate(db, "a@example.com", "pw", expected_role="user")

    with pytest.raises(PortalError) as exc:
        CredentialService.authenticate(db, "a@example.com", "pw", expected_role="admin")
    assert exc.value.kind == ErrorKind.ROLE_MISMATCH


def test_reset_password(db):
    CredentialService.register(db, "A", "a@example.com", "old")
    CredentialService.reset_password(db, "A@example.com", "new")

    assert CredentialService.authenticate(db, "a@example.com", "new")
    with pytest.raises(PortalError):
        CredentialService.authenticate(db, "a@example.com", "old")


def test_reset_password_unknown_email(db):
    with pytest.raises(PortalError) as exc:
        CredentialService.reset_password(db, "ghost@example.com", "new")
    assert exc.value.kind == ErrorKind.NOT_FOUND


def test_bootstrap_admin_exists(db):
    admin = CredentialService.find_by_email(db, "admin@gyansetu.test")
    assert admin is not None
    assert admin.role.value == "admin"
    # Idempotent
    assert CredentialService.ensure_admin(db, "admin@gyansetu.test", "x").account_id == admin.account_id
