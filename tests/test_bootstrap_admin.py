from apartment_admin.auth.jwt import verify_password
from apartment_admin.config import settings
from apartment_admin.main import ensure_bootstrap_admin
from apartment_admin.models.models import Admin


def test_bootstrap_creates_super_admin_once(db_session, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_email", "Root@Example.com")
    monkeypatch.setattr(settings, "bootstrap_admin_password", "first-password")

    ensure_bootstrap_admin(db_session)
    monkeypatch.setattr(settings, "bootstrap_admin_password", "second-password")
    ensure_bootstrap_admin(db_session)

    admins = db_session.query(Admin).all()
    assert len(admins) == 1
    assert admins[0].email == "root@example.com"
    assert admins[0].role == "super-admin"
    assert verify_password("first-password", admins[0].hashed_password)


def test_bootstrap_is_skipped_without_credentials(db_session, monkeypatch):
    monkeypatch.setattr(settings, "bootstrap_admin_email", None)

    ensure_bootstrap_admin(db_session)

    assert db_session.query(Admin).count() == 0
