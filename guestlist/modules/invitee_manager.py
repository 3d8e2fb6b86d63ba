"""
Invitee Manager Module - Guest Check-in System

This module handles guest list operations: registering invitees, generating
their QR payloads, recording admission and searching the list. Every
mutating operation finishes by re-reading the store so callers can render
the fresh list straight from the result.

Features:
- Invitee registration with validation
- QR payload generation
- Admission recording (one-way, enforced)
- Name / national id search
- Guest list statistics
"""

from datetime import datetime, timezone
from typing import Dict, List, Any, Optional
import logging
import secrets
import string

from guestlist.modules.invitee_store import InviteeStore
from guestlist.modules.models import GuestType, Invitee, build_qr_payload

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 7


class InviteeManager:
    """
    Guest list operations on top of an injected InviteeStore.
    """

    def __init__(self, store: InviteeStore):
        """
        Initialize the invitee manager.

        Args:
            store: Persistence backend selected at startup
        """
        self.store = store
        self.logger = logging.getLogger(__name__)

        self.logger.info(f"Invitee manager initialized with {type(store).__name__}")

    def _generate_id(self, existing_ids) -> str:
        while True:
            invitee_id = 'id_' + ''.join(secrets.choice(ID_ALPHABET) for _ in range(ID_LENGTH))
            if invitee_id not in existing_ids:
                return invitee_id

    @staticmethod
    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    def list_invitees(self) -> List[Invitee]:
        """
        Get the whole guest list sorted by name.

        Returns:
            List[Invitee]: Invitees ordered by full name
        """
        invitees = self.store.list()
        return sorted(invitees, key=lambda invitee: invitee.full_name.casefold())

    def get_invitee(self, invitee_id: str) -> Optional[Invitee]:
        return self.store.get(invitee_id)

    def add_invitee(self, full_name: str, guest_type: Any = GuestType.INVITED,
                    national_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Register a new invitee.

        Args:
            full_name (str): Display name, required
            guest_type: GuestType or its name
            national_id (str): Optional secondary identifier

        Returns:
            Dict[str, Any]: Creation result with the new invitee and the refreshed list
        """
        full_name = (full_name or '').strip()
        if not full_name:
            return {
                'success': False,
                'error': 'Full name is required',
                'error_type': 'validation_error'
            }

        parsed_type = GuestType.parse(guest_type)
        if parsed_type is None:
            return {
                'success': False,
                'error': f'Unknown guest type: {guest_type}',
                'error_type': 'validation_error'
            }

        try:
            existing_ids = {invitee.id for invitee in self.store.list()}
            invitee = Invitee(
                id=self._generate_id(existing_ids),
                full_name=full_name,
                guest_type=parsed_type,
                qr_payload='',
                admitted=False,
                admitted_at=None,
                national_id=(national_id or '').strip() or None
            )

            self.store.insert(invitee)
            self.logger.info(f"Invitee created: {invitee.id} ({invitee.guest_type.value})")

            return {
                'success': True,
                'invitee': invitee,
                'invitees': self.list_invitees(),
                'message': f'{invitee.full_name} added to the guest list'
            }

        except Exception as e:
            self.logger.error(f"Invitee creation failed for {full_name}: {str(e)}")
            return {
                'success': False,
                'error': 'Failed to create invitee record',
                'error_type': 'system_error'
            }

    def generate_qr(self, invitee_id: str) -> Dict[str, Any]:
        """
        Store the QR payload for an invitee. Regenerating overwrites the
        payload with the same derived value.

        Args:
            invitee_id (str): Invitee identifier

        Returns:
            Dict[str, Any]: Result with the payload and the refreshed list
        """
        try:
            invitee = self.store.get(invitee_id)
            if not invitee:
                return {
                    'success': False,
                    'error': 'Invitee not found',
                    'error_type': 'not_found'
                }

            qr_payload = build_qr_payload(invitee.id)
            self.store.update(invitee.id, {'qr_payload': qr_payload})
            invitee.qr_payload = qr_payload

            self.logger.info(f"QR payload generated for invitee {invitee.id}")

            return {
                'success': True,
                'invitee': invitee,
                'qr_payload': qr_payload,
                'invitees': self.list_invitees()
            }

        except Exception as e:
            self.logger.error(f"QR generation failed for invitee {invitee_id}: {str(e)}")
            return {
                'success': False,
                'error': 'Failed to generate QR code',
                'error_type': 'system_error'
            }

    def mark_admitted(self, invitee_id: str) -> Dict[str, Any]:
        """
        Record an invitee's entry. Admission is one-way: an invitee that is
        already admitted is rejected and keeps its original timestamp.

        Args:
            invitee_id (str): Invitee identifier

        Returns:
            Dict[str, Any]: Admission result with the refreshed list
        """
        try:
            invitee = self.store.get(invitee_id)
            if not invitee:
                return {
                    'success': False,
                    'error': 'Invitee not found',
                    'error_type': 'not_found'
                }

            if invitee.admitted:
                self.logger.info(f"Admission rejected, invitee {invitee.id} already admitted at {invitee.admitted_at}")
                return {
                    'success': False,
                    'error': f'{invitee.full_name} was already admitted',
                    'error_type': 'already_admitted',
                    'invitee': invitee
                }

            admitted_at = self._now()
            self.store.update(invitee.id, {'admitted': True, 'admitted_at': admitted_at})
            invitee.admitted = True
            invitee.admitted_at = admitted_at

            self.logger.info(f"Invitee admitted: {invitee.id} at {admitted_at}")

            return {
                'success': True,
                'invitee': invitee,
                'invitees': self.list_invitees(),
                'message': f'Entry recorded for {invitee.full_name}'
            }

        except Exception as e:
            self.logger.error(f"Admission failed for invitee {invitee_id}: {str(e)}")
            return {
                'success': False,
                'error': 'Failed to record entry',
                'error_type': 'system_error'
            }

    @staticmethod
    def search(invitees: List[Invitee], query: str = '',
               national_id_filter: Optional[str] = None) -> List[Invitee]:
        """
        Filter a list by name or national id.

        A record matches when the query is a case-insensitive substring of
        its name or a substring of its national id, and, when a filter is
        given, its national id equals the filter exactly.
        """
        query = query or ''
        term = query.lower()
        national_id_filter = (national_id_filter or '').strip()

        results = []
        for invitee in invitees:
            match_name = term in (invitee.full_name or '').lower()
            match_national_id = bool(invitee.national_id) and query in invitee.national_id
            by_national_id = invitee.national_id == national_id_filter if national_id_filter else True

            if (match_name or match_national_id) and by_national_id:
                results.append(invitee)

        return results

    @staticmethod
    def get_statistics(invitees: List[Invitee]) -> Dict[str, int]:
        admitted = sum(1 for invitee in invitees if invitee.admitted)
        return {
            'total': len(invitees),
            'admitted': admitted,
            'pending': len(invitees) - admitted,
            'invited': sum(1 for invitee in invitees if invitee.guest_type == GuestType.INVITED),
            'promoted': sum(1 for invitee in invitees if invitee.guest_type == GuestType.PROMOTED),
            'qr_generated': sum(1 for invitee in invitees if invitee.has_qr)
        }
