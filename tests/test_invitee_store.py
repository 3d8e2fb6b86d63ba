import json
import sqlite3
from unittest import mock

import pytest
import requests

from guestlist.modules.database_manager import DatabaseManager
from guestlist.modules.invitee_store import (LocalInviteeStore, RemoteInviteeStore,
                                             create_invitee_store, seed_sample_guests)
from guestlist.modules.models import GuestType, Invitee


def make_invitee(invitee_id='id_abc1234', full_name='Ana Torres', **kwargs):
    return Invitee(id=invitee_id, full_name=full_name, **kwargs)


def fake_response(status_code=200, payload=None):
    response = mock.Mock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = json.dumps(payload) if payload is not None else ''
    response.json.return_value = payload
    return response


@pytest.fixture
def http_session():
    return requests.Session()


@pytest.fixture
def remote_store(local_store, http_session):
    return RemoteInviteeStore('https://example.supabase.co/', 'anon-key', local_store,
                              timeout=5, session=http_session)


class TestLocalInviteeStore:
    def test_empty_on_first_run(self, local_store):
        assert local_store.list() == []
        assert local_store.is_empty()

    def test_insert_and_list(self, local_store):
        local_store.insert(make_invitee())
        local_store.insert(make_invitee('id_def5678', 'Luis Vega', guest_type=GuestType.PROMOTED))

        invitees = local_store.list()
        assert [invitee.id for invitee in invitees] == ['id_abc1234', 'id_def5678']
        assert invitees[1].guest_type == GuestType.PROMOTED

    def test_whole_collection_is_one_blob(self, local_store):
        local_store.insert(make_invitee())
        local_store.insert(make_invitee('id_def5678', 'Luis Vega'))

        blob = json.loads(local_store.db.get_blob('invitados_sistema_v1'))
        assert isinstance(blob, list)
        assert {record['id'] for record in blob} == {'id_abc1234', 'id_def5678'}

    def test_update_replaces_only_matching_record(self, local_store):
        local_store.insert(make_invitee())
        local_store.insert(make_invitee('id_def5678', 'Luis Vega'))

        local_store.update('id_def5678', {'admitted': True, 'admitted_at': '2026-10-18T20:00:00+00:00'})

        first, second = local_store.list()
        assert not first.admitted
        assert second.admitted
        assert second.admitted_at == '2026-10-18T20:00:00+00:00'
        assert second.full_name == 'Luis Vega'

    def test_get(self, local_store):
        local_store.insert(make_invitee())
        assert local_store.get('id_abc1234').full_name == 'Ana Torres'
        assert local_store.get('missing') is None

    def test_corrupt_blob_reads_as_empty(self, local_store):
        local_store.db.set_blob('invitados_sistema_v1', '{not json')
        assert local_store.list() == []

    def test_non_array_blob_reads_as_empty(self, local_store):
        local_store.db.set_blob('invitados_sistema_v1', '{"id": "id_abc1234"}')
        assert local_store.list() == []

    def test_write_errors_are_swallowed(self, local_store, monkeypatch, caplog):
        def broken_write(key, value):
            raise sqlite3.OperationalError('disk I/O error')

        monkeypatch.setattr(local_store.db, 'set_blob', broken_write)

        local_store.insert(make_invitee())

        assert 'Failed to write local guest list' in caplog.text

    def test_survives_reopen(self, tmp_path):
        path = tmp_path / 'reopen.db'
        LocalInviteeStore(DatabaseManager(path), 'key').insert(make_invitee())

        reopened = LocalInviteeStore(DatabaseManager(path), 'key')
        assert [invitee.id for invitee in reopened.list()] == ['id_abc1234']


class TestRemoteInviteeStore:
    def test_list_reads_remote_rows(self, remote_store, http_session, monkeypatch):
        request = mock.Mock(return_value=fake_response(200, [
            {'id': 'id_r1', 'full_name': 'Remote Guest', 'guest_type': 'PROMOTED'}
        ]))
        monkeypatch.setattr(http_session, 'request', request)

        invitees = remote_store.list()

        assert [invitee.id for invitee in invitees] == ['id_r1']
        args, kwargs = request.call_args
        assert args == ('GET', 'https://example.supabase.co/rest/v1/invitados')
        assert kwargs['params']['order'] == 'full_name.asc'
        assert kwargs['timeout'] == 5

    def test_auth_headers(self, remote_store, http_session):
        assert http_session.headers['apikey'] == 'anon-key'
        assert http_session.headers['Authorization'] == 'Bearer anon-key'

    def test_list_falls_back_when_unreachable(self, remote_store, local_store, http_session, monkeypatch):
        local_store.insert(make_invitee())
        monkeypatch.setattr(http_session, 'request',
                            mock.Mock(side_effect=requests.ConnectionError('unreachable')))

        invitees = remote_store.list()

        assert [invitee.id for invitee in invitees] == ['id_abc1234']

    def test_list_falls_back_on_error_status(self, remote_store, local_store, http_session, monkeypatch):
        local_store.insert(make_invitee())
        monkeypatch.setattr(http_session, 'request',
                            mock.Mock(return_value=fake_response(503, {'message': 'down'})))

        assert [invitee.id for invitee in remote_store.list()] == ['id_abc1234']

    def test_insert_posts_record(self, remote_store, local_store, http_session, monkeypatch):
        request = mock.Mock(return_value=fake_response(201))
        monkeypatch.setattr(http_session, 'request', request)

        remote_store.insert(make_invitee())

        args, kwargs = request.call_args
        assert args[0] == 'POST'
        assert kwargs['json']['id'] == 'id_abc1234'
        assert kwargs['json']['guest_type'] == 'INVITED'
        assert local_store.list() == []

    def test_insert_falls_back_to_local(self, remote_store, local_store, http_session, monkeypatch):
        monkeypatch.setattr(http_session, 'request',
                            mock.Mock(side_effect=requests.Timeout('slow')))

        remote_store.insert(make_invitee())

        assert [invitee.id for invitee in local_store.list()] == ['id_abc1234']

    def test_update_patches_by_id(self, remote_store, http_session, monkeypatch):
        request = mock.Mock(return_value=fake_response(204))
        monkeypatch.setattr(http_session, 'request', request)

        remote_store.update('id_abc1234', {'qr_payload': '{"id": "id_abc1234"}'})

        args, kwargs = request.call_args
        assert args[0] == 'PATCH'
        assert kwargs['params'] == {'id': 'eq.id_abc1234'}
        assert kwargs['json'] == {'qr_payload': '{"id": "id_abc1234"}'}

    def test_get_by_id(self, remote_store, http_session, monkeypatch):
        monkeypatch.setattr(http_session, 'request', mock.Mock(return_value=fake_response(200, [
            {'id': 'id_r1', 'full_name': 'Remote Guest'}
        ])))

        assert remote_store.get('id_r1').full_name == 'Remote Guest'

    def test_get_missing_returns_none(self, remote_store, http_session, monkeypatch):
        monkeypatch.setattr(http_session, 'request', mock.Mock(return_value=fake_response(200, [])))

        assert remote_store.get('id_missing') is None


class TestStoreSelection:
    def base_config(self, tmp_path, **overrides):
        config = {
            'LOCAL_STORE_PATH': str(tmp_path / 'select.db'),
            'LOCAL_STORE_KEY': 'invitados_sistema_v1',
            'SEED_SAMPLE_GUESTS': False,
            'SUPABASE_URL': '',
            'SUPABASE_KEY': '',
            'REMOTE_TABLE': 'invitados',
            'REMOTE_STORE_TIMEOUT': 5
        }
        config.update(overrides)
        return config

    def test_local_when_not_configured(self, tmp_path):
        assert isinstance(create_invitee_store(self.base_config(tmp_path)), LocalInviteeStore)

    def test_remote_when_configured(self, tmp_path):
        store = create_invitee_store(self.base_config(
            tmp_path, SUPABASE_URL='https://example.supabase.co', SUPABASE_KEY='anon-key'
        ))

        assert isinstance(store, RemoteInviteeStore)
        assert isinstance(store.fallback, LocalInviteeStore)
        assert store.endpoint == 'https://example.supabase.co/rest/v1/invitados'

    def test_seeds_sample_guests_once(self, tmp_path):
        store = create_invitee_store(self.base_config(tmp_path, SEED_SAMPLE_GUESTS=True))

        names = sorted(invitee.full_name for invitee in store.list())
        assert names == ['Andres Sanchez Valentin', 'Jesús Andres Andía Zambrano']
        assert seed_sample_guests(store) == 0
        assert len(store.list()) == 2


def test_close_releases_local_connection(local_store):
    local_store.insert(make_invitee())
    assert hasattr(local_store.db._local, 'connection')

    local_store.close()

    assert not hasattr(local_store.db._local, 'connection')
    assert [invitee.id for invitee in local_store.list()] == ['id_abc1234']


def test_in_memory_store_survives_close():
    store = LocalInviteeStore(DatabaseManager(':memory:'), 'invitados_sistema_v1')
    store.insert(make_invitee())

    store.close()

    assert len(store.list()) == 1
