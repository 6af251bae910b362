"""Shared test fixtures."""
import base64

import pytest

from dunesea.config import Settings
from dunesea.mailer import MailResult
from dunesea.store import JsonStore
from dunesea.uploads import PLACEHOLDER_PNG, UploadStore
from dunesea.web import create_app

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PLACEHOLDER_PNG).decode("ascii")
JPEG_DATA_URL = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xe0" + b"\x00" * 32).decode("ascii")

# Tuesday 2025-03-04 08:00 in Chicago (CST, UTC-6)
TUESDAY_8AM = "2025-03-04T14:00:00.000Z"
TUESDAY_10AM = "2025-03-04T16:00:00.000Z"

ADMIN_PIN = "2468"


class FakeMailer:
    """Records what would have been emailed."""

    configured = True

    def __init__(self):
        self.contacts = []
        self.bookings = []

    def send_contact(self, message):
        self.contacts.append(message)
        return MailResult(ok=True)

    def send_booking_request(self, appt):
        self.bookings.append(appt)
        return MailResult(ok=True)


@pytest.fixture(autouse=True)
def setup_env(monkeypatch):
    """Keep the developer's own environment out of the tests."""
    for name in ("ADMIN_PIN", "GMAIL_USER", "GMAIL_APP_PASSWORD", "MAIL_TO", "MAIL_FROM", "DATA_DIR", "SITE_ROOT"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def site_root(tmp_path):
    """A tiny static site."""
    root = tmp_path / "site"
    (root / "css").mkdir(parents=True)
    (root / "index.html").write_text("<h1>Dune Sea Diagnostics</h1>", encoding="utf-8")
    (root / "services.html").write_text("<h1>Services</h1>", encoding="utf-8")
    (root / "css" / "style.css").write_text("body { color: #333; }", encoding="utf-8")
    return root


@pytest.fixture
def settings(tmp_path, site_root) -> Settings:
    return Settings(data_dir=tmp_path / "data", site_root=site_root)


@pytest.fixture
def store(tmp_path) -> JsonStore:
    return JsonStore(tmp_path / "data")


@pytest.fixture
def uploads(store) -> UploadStore:
    return UploadStore(store.uploads_dir)


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


def _make_app(settings, mailer):
    app = create_app(settings, mailer=mailer)
    app.config["TESTING"] = True
    # Contact emails go out inline so tests can see them
    app.extensions["dunesea"]["inbox"].background = False
    return app


@pytest.fixture
def app(settings, mailer):
    return _make_app(settings, mailer)


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_app(tmp_path, site_root, mailer):
    """App with management mode locked behind ADMIN_PIN."""
    settings = Settings(data_dir=tmp_path / "data", site_root=site_root, admin_pin=ADMIN_PIN)
    return _make_app(settings, mailer)


@pytest.fixture
def admin_client(admin_app):
    with admin_app.test_client() as client:
        yield client
