"""
Invitee Store Module - Guest Check-in System

Persistence adapter for the guest list. One interface, two backends:

- LocalInviteeStore keeps the whole collection as one JSON array under a
  fixed key in the local SQLite file.
- RemoteInviteeStore talks to a hosted Supabase/PostgREST table and falls
  back to the local store for any call that fails.

The backend is chosen once at startup by create_invitee_store() and then
injected into the invitee manager.
"""

import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests

from guestlist.modules.database_manager import DatabaseManager
from guestlist.modules.models import GuestType, Invitee


class RemoteStoreError(Exception):
    """Raised internally when the remote store cannot serve a call."""


class InviteeStore(ABC):
    """Storage contract shared by both backends."""

    @abstractmethod
    def list(self) -> List[Invitee]:
        """Return every stored invitee."""

    @abstractmethod
    def insert(self, invitee: Invitee) -> None:
        """Store a new invitee."""

    @abstractmethod
    def update(self, invitee_id: str, fields: Dict[str, Any]) -> None:
        """Patch the fields of the invitee with the given id."""

    def get(self, invitee_id: str) -> Optional[Invitee]:
        for invitee in self.list():
            if invitee.id == invitee_id:
                return invitee
        return None

    def close(self) -> None:
        """Release per-thread resources at the end of a request."""


class LocalInviteeStore(InviteeStore):
    """
    Device-side store. Every mutation rewrites the whole blob; there is no
    locking, a single operator is assumed.
    """

    def __init__(self, database_manager: DatabaseManager, storage_key: str):
        self.db = database_manager
        self.storage_key = storage_key
        self.logger = logging.getLogger(__name__)

    def _load(self) -> List[Dict[str, Any]]:
        try:
            raw = self.db.get_blob(self.storage_key, '[]')
            data = json.loads(raw or '[]')
            if not isinstance(data, list):
                raise ValueError(f"expected a JSON array, got {type(data).__name__}")
            return [item for item in data if isinstance(item, dict) and item.get('id')]
        except Exception as e:
            # First run or a damaged blob both start from an empty list
            self.logger.warning(f"Local guest list unreadable, starting empty: {str(e)}")
            return []

    def _save(self, records: List[Dict[str, Any]]) -> None:
        try:
            self.db.set_blob(self.storage_key, json.dumps(records, ensure_ascii=False))
        except Exception as e:
            self.logger.error(f"Failed to write local guest list: {str(e)}")

    def list(self) -> List[Invitee]:
        return [Invitee.from_dict(record) for record in self._load()]

    def insert(self, invitee: Invitee) -> None:
        records = self._load()
        records.append(invitee.to_dict())
        self._save(records)

    def update(self, invitee_id: str, fields: Dict[str, Any]) -> None:
        records = [
            {**record, **fields} if record.get('id') == invitee_id else record
            for record in self._load()
        ]
        self._save(records)

    def is_empty(self) -> bool:
        return not self._load()

    def close(self) -> None:
        self.db.close_all_connections()


class RemoteInviteeStore(InviteeStore):
    """
    Hosted store reached through the PostgREST API Supabase exposes.
    Failures are logged and the same call is served by the local store.
    """

    def __init__(self, base_url: str, api_key: str, fallback: LocalInviteeStore,
                 table: str = 'invitados', timeout: float = 30,
                 session: Optional[requests.Session] = None):
        self.endpoint = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self.fallback = fallback
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

        self.session = session or requests.Session()
        self.session.headers.update({
            'apikey': api_key,
            'Authorization': f"Bearer {api_key}",
            'Content-Type': 'application/json'
        })

    def _request(self, method: str, params: Optional[Dict[str, str]] = None,
                 payload: Optional[Any] = None, prefer: Optional[str] = None) -> requests.Response:
        headers = {'Prefer': prefer} if prefer else None
        try:
            response = self.session.request(
                method,
                self.endpoint,
                params=params,
                json=payload,
                headers=headers,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise RemoteStoreError(f"{method} {self.endpoint} failed: {e}") from e

        if not response.ok:
            raise RemoteStoreError(
                f"{method} {self.endpoint} returned {response.status_code}: {response.text[:200]}"
            )
        return response

    def list(self) -> List[Invitee]:
        try:
            response = self._request('GET', params={'select': '*', 'order': 'full_name.asc'})
            rows = response.json()
            if not isinstance(rows, list):
                raise RemoteStoreError(f"unexpected list response: {rows!r}")
            return [Invitee.from_dict(row) for row in rows]
        except (RemoteStoreError, ValueError, KeyError) as e:
            self.logger.warning(f"Remote list failed, falling back to local store: {str(e)}")
            return self.fallback.list()

    def get(self, invitee_id: str) -> Optional[Invitee]:
        try:
            response = self._request('GET', params={'select': '*', 'id': f"eq.{invitee_id}"})
            rows = response.json()
            return Invitee.from_dict(rows[0]) if rows else None
        except (RemoteStoreError, ValueError, KeyError, IndexError, TypeError) as e:
            self.logger.warning(f"Remote lookup of {invitee_id} failed, falling back to local store: {str(e)}")
            return self.fallback.get(invitee_id)

    def insert(self, invitee: Invitee) -> None:
        try:
            self._request('POST', payload=invitee.to_dict(), prefer='return=minimal')
        except RemoteStoreError as e:
            self.logger.warning(f"Remote insert of {invitee.id} failed, writing to local store: {str(e)}")
            self.fallback.insert(invitee)

    def update(self, invitee_id: str, fields: Dict[str, Any]) -> None:
        try:
            self._request('PATCH', params={'id': f"eq.{invitee_id}"},
                          payload=fields, prefer='return=minimal')
        except RemoteStoreError as e:
            self.logger.warning(f"Remote update of {invitee_id} failed, writing to local store: {str(e)}")
            self.fallback.update(invitee_id, fields)

    def close(self) -> None:
        self.fallback.close()


SAMPLE_GUESTS = [
    {
        'id': 'id_sample1',
        'full_name': 'Jesús Andres Andía Zambrano',
        'guest_type': GuestType.PROMOTED.value,
        'national_id': '00000001'
    },
    {
        'id': 'id_sample2',
        'full_name': 'Andres Sanchez Valentin',
        'guest_type': GuestType.INVITED.value,
        'national_id': '00000002'
    }
]


def seed_sample_guests(store: LocalInviteeStore) -> int:
    """Store the sample guests when the local list is empty. Returns the count added."""
    if not store.is_empty():
        return 0

    for record in SAMPLE_GUESTS:
        store.insert(Invitee.from_dict(record))

    store.logger.info(f"Seeded {len(SAMPLE_GUESTS)} sample guests into the local store")
    return len(SAMPLE_GUESTS)


def create_invitee_store(app_config: Dict[str, Any],
                         session: Optional[requests.Session] = None) -> InviteeStore:
    """
    Build the store selected by configuration. Called once at startup.

    Args:
        app_config: Flask config mapping
        session: Optional HTTP session for the remote backend

    Returns:
        InviteeStore: Remote store when credentials are configured, local otherwise
    """
    logger = logging.getLogger(__name__)

    local_store = LocalInviteeStore(
        DatabaseManager(app_config['LOCAL_STORE_PATH']),
        app_config['LOCAL_STORE_KEY']
    )

    if app_config.get('SEED_SAMPLE_GUESTS'):
        seed_sample_guests(local_store)

    if app_config.get('SUPABASE_URL') and app_config.get('SUPABASE_KEY'):
        logger.info(f"Using remote guest store at {app_config['SUPABASE_URL']}")
        return RemoteInviteeStore(
            app_config['SUPABASE_URL'],
            app_config['SUPABASE_KEY'],
            local_store,
            table=app_config.get('REMOTE_TABLE', 'invitados'),
            timeout=app_config.get('REMOTE_STORE_TIMEOUT', 30),
            session=session
        )

    logger.info("Remote store not configured, using local guest store")
    return local_store
