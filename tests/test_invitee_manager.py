import json

from guestlist.modules.invitee_manager import InviteeManager
from guestlist.modules.models import GuestType, Invitee


def test_add_invitee_assigns_fresh_defaults(invitee_manager):
    result = invitee_manager.add_invitee('  Ana Torres ', 'PROMOTED', ' 4455 ')

    assert result['success']
    invitee = result['invitee']
    assert invitee.id.startswith('id_')
    assert len(invitee.id) == 10
    assert invitee.full_name == 'Ana Torres'
    assert invitee.guest_type == GuestType.PROMOTED
    assert invitee.national_id == '4455'
    assert invitee.qr_payload == ''
    assert invitee.admitted is False
    assert invitee.admitted_at is None
    assert [item.id for item in result['invitees']] == [invitee.id]


def test_added_ids_are_unique(invitee_manager):
    ids = [invitee_manager.add_invitee(f'Guest {n}')['invitee'].id for n in range(40)]

    assert len(set(ids)) == 40
    assert {invitee.id for invitee in invitee_manager.list_invitees()} == set(ids)


def test_id_collision_is_regenerated(invitee_manager, monkeypatch):
    invitee_manager.store.insert(Invitee(id='id_aaaaaaa', full_name='Existing'))
    choices = iter('aaaaaaa' + 'bbbbbbb')
    monkeypatch.setattr('guestlist.modules.invitee_manager.secrets.choice', lambda alphabet: next(choices))

    result = invitee_manager.add_invitee('Newcomer')

    assert result['invitee'].id == 'id_bbbbbbb'


def test_blank_name_is_rejected(invitee_manager):
    result = invitee_manager.add_invitee('   ')

    assert not result['success']
    assert result['error_type'] == 'validation_error'
    assert invitee_manager.list_invitees() == []


def test_unknown_guest_type_is_rejected(invitee_manager):
    result = invitee_manager.add_invitee('Ana Torres', 'VIP')

    assert not result['success']
    assert result['error_type'] == 'validation_error'


def test_blank_national_id_is_stored_as_none(invitee_manager):
    invitee = invitee_manager.add_invitee('Ana Torres', national_id='  ')['invitee']

    assert invitee_manager.get_invitee(invitee.id).national_id is None


def test_list_is_sorted_by_name(invitee_manager):
    for name in ['carla', 'Bruno', 'alba']:
        invitee_manager.add_invitee(name)

    assert [invitee.full_name for invitee in invitee_manager.list_invitees()] == ['alba', 'Bruno', 'carla']


def test_generate_qr_is_idempotent(invitee_manager):
    invitee = invitee_manager.add_invitee('Ana Torres')['invitee']

    first = invitee_manager.generate_qr(invitee.id)
    second = invitee_manager.generate_qr(invitee.id)

    assert first['success'] and second['success']
    assert first['qr_payload'] == second['qr_payload']
    assert json.loads(first['qr_payload']) == {'id': invitee.id}
    assert invitee_manager.get_invitee(invitee.id).qr_payload == first['qr_payload']


def test_generate_qr_unknown_invitee(invitee_manager):
    result = invitee_manager.generate_qr('id_missing')

    assert not result['success']
    assert result['error_type'] == 'not_found'


def test_mark_admitted_sets_flag_and_timestamp(invitee_manager):
    invitee = invitee_manager.add_invitee('Ana Torres')['invitee']

    result = invitee_manager.mark_admitted(invitee.id)

    assert result['success']
    stored = invitee_manager.get_invitee(invitee.id)
    assert stored.admitted is True
    assert stored.admitted_at is not None


def test_mark_admitted_twice_keeps_first_timestamp(invitee_manager):
    invitee = invitee_manager.add_invitee('Ana Torres')['invitee']
    first_timestamp = invitee_manager.mark_admitted(invitee.id)['invitee'].admitted_at

    second = invitee_manager.mark_admitted(invitee.id)

    assert not second['success']
    assert second['error_type'] == 'already_admitted'
    assert invitee_manager.get_invitee(invitee.id).admitted_at == first_timestamp


def test_mark_admitted_unknown_invitee(invitee_manager):
    assert invitee_manager.mark_admitted('id_missing')['error_type'] == 'not_found'


def test_store_failure_is_reported(invitee_manager, monkeypatch):
    invitee = invitee_manager.add_invitee('Ana Torres')['invitee']

    def broken_update(invitee_id, fields):
        raise RuntimeError('backend exploded')

    monkeypatch.setattr(invitee_manager.store, 'update', broken_update)

    result = invitee_manager.mark_admitted(invitee.id)
    assert not result['success']
    assert result['error_type'] == 'system_error'


class TestSearch:
    invitees = [
        Invitee(id='id_1', full_name='Jesús Andres Andía Zambrano', national_id='00000001'),
        Invitee(id='id_2', full_name='Andres Sanchez Valentin', national_id='00000002'),
        Invitee(id='id_3', full_name='María Quispe', national_id=None)
    ]

    def names(self, results):
        return [invitee.full_name for invitee in results]

    def test_name_match_is_case_insensitive(self):
        results = InviteeManager.search(self.invitees, 'zambrano')
        assert self.names(results) == ['Jesús Andres Andía Zambrano']

    def test_empty_query_matches_everything(self):
        assert len(InviteeManager.search(self.invitees, '')) == 3

    def test_national_id_substring(self):
        results = InviteeManager.search(self.invitees, '0002')
        assert self.names(results) == ['Andres Sanchez Valentin']

    def test_national_id_filter_is_exact(self):
        results = InviteeManager.search(self.invitees, 'andres', '00000001')
        assert self.names(results) == ['Jesús Andres Andía Zambrano']

        assert InviteeManager.search(self.invitees, 'andres', '0000000') == []

    def test_no_match(self):
        assert InviteeManager.search(self.invitees, 'gutierrez') == []


def test_statistics():
    invitees = [
        Invitee(id='id_1', full_name='A', guest_type=GuestType.PROMOTED, admitted=True,
                admitted_at='2026-10-18T20:00:00+00:00', qr_payload='{"id": "id_1"}'),
        Invitee(id='id_2', full_name='B'),
        Invitee(id='id_3', full_name='C')
    ]

    assert InviteeManager.get_statistics(invitees) == {
        'total': 3,
        'admitted': 1,
        'pending': 2,
        'invited': 2,
        'promoted': 1,
        'qr_generated': 1
    }
