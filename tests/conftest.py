import pytest

from guestlist import create_app
from guestlist.modules.database_manager import DatabaseManager
from guestlist.modules.invitee_manager import InviteeManager
from guestlist.modules.invitee_store import LocalInviteeStore
from guestlist.modules.qr_generator import QRGenerator

ADMIN_USERNAME = 'jesusandia124'
ADMIN_PASSWORD = 'andia124'


@pytest.fixture
def local_store(tmp_path):
    return LocalInviteeStore(DatabaseManager(tmp_path / 'guests.db'), 'invitados_sistema_v1')


@pytest.fixture
def invitee_manager(local_store):
    return InviteeManager(local_store)


@pytest.fixture
def qr_generator():
    return QRGenerator(box_size=4, border=2)


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', overrides={'LOCAL_STORE_PATH': str(tmp_path / 'app.db')})
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    response = client.post('/login', data={'username': ADMIN_USERNAME, 'password': ADMIN_PASSWORD})
    assert response.status_code == 302
    return client


@pytest.fixture
def app_manager(app):
    return app.extensions['guestlist']['invitee_manager']
