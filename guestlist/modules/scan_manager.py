"""
Scan Manager Module - Guest Check-in System

This module handles the entrance scanner workflow. A scan session takes a
snapshot of the guest list when the scanner view is opened, matches each
decoded QR payload against that snapshot and lets the operator confirm
the entry of a matched guest.

States: AWAITING_SCAN -> MATCHED | INVALID. The snapshot is not refreshed
while scanning, so an admission recorded on another device is not seen
until the scanner view is reopened.

Features:
- Scan payload validation and matching
- Admission confirmation for matched guests
- Suppression of repeated decodes of the same code
- One scan session per browser session
"""

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from guestlist.modules.invitee_manager import InviteeManager
from guestlist.modules.models import Invitee
from guestlist.modules.qr_generator import QRGenerator

MESSAGE_INVALID = 'Invalid QR code'
MESSAGE_NOT_REGISTERED = 'Guest not registered'
MESSAGE_ADMITTED = 'Entry recorded'


class ScanState(str, Enum):
    AWAITING_SCAN = 'AWAITING_SCAN'
    MATCHED = 'MATCHED'
    INVALID = 'INVALID'


@dataclass
class ScanResult:
    """Outcome of one decoded payload."""
    state: ScanState
    raw: str
    invitee: Optional[Invitee] = None
    message: str = ''
    error_type: Optional[str] = None
    duplicate: bool = False
    scanned_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    @property
    def matched(self) -> bool:
        return self.state == ScanState.MATCHED

    def to_dict(self) -> Dict[str, Any]:
        return {
            'state': self.state.value,
            'raw': self.raw,
            'invitee': self.invitee.to_dict() if self.invitee else None,
            'message': self.message,
            'error_type': self.error_type,
            'duplicate': self.duplicate,
            'scanned_at': self.scanned_at
        }


class ScanSession:
    """
    Scanner state for one operator screen.
    """

    def __init__(self, invitee_manager: InviteeManager, qr_generator: QRGenerator,
                 duplicate_window_seconds: float = 3):
        self.invitee_manager = invitee_manager
        self.qr_generator = qr_generator
        self.duplicate_window_seconds = duplicate_window_seconds
        self.logger = logging.getLogger(__name__)

        self.session_id = uuid.uuid4().hex
        self.state = ScanState.AWAITING_SCAN
        self.current: Optional[Invitee] = None
        self.last_result: Optional[ScanResult] = None
        self._last_seen_at = 0.0

        self.snapshot: List[Invitee] = invitee_manager.list_invitees()
        self.logger.info(f"Scan session {self.session_id} opened with {len(self.snapshot)} invitees")

    @staticmethod
    def _raw_text(payload: Any) -> str:
        if isinstance(payload, bytes):
            return payload.decode('utf-8', errors='replace')
        if isinstance(payload, str):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get('text'), str):
            return payload['text']
        return repr(payload)

    def _find(self, invitee_id: str) -> Optional[Invitee]:
        for invitee in self.snapshot:
            if invitee.id == invitee_id:
                return invitee
        return None

    def process_scan(self, payload: Any) -> ScanResult:
        """
        Process one decoded payload from the camera reader.

        Args:
            payload: Decoded text, or a structured payload / reader result

        Returns:
            ScanResult: MATCHED with the invitee, or INVALID with a message
        """
        raw = self._raw_text(payload)
        now = time.monotonic()

        if (self.last_result is not None
                and self.last_result.raw == raw
                and now - self._last_seen_at < self.duplicate_window_seconds):
            self._last_seen_at = now
            self.logger.debug(f"Duplicate decode ignored in session {self.session_id}")
            return ScanResult(
                state=self.last_result.state,
                raw=raw,
                invitee=self.current,
                message=self.last_result.message,
                error_type=self.last_result.error_type,
                duplicate=True
            )

        self._last_seen_at = now
        validation = self.qr_generator.parse_payload(payload)

        if not validation['valid']:
            result = ScanResult(
                state=ScanState.INVALID,
                raw=raw,
                message=MESSAGE_INVALID,
                error_type='malformed'
            )
            self.current = None
            self.logger.info(f"Malformed QR payload scanned: {validation['error']}")

        else:
            invitee = self._find(validation['invitee_id'])
            if invitee is None:
                result = ScanResult(
                    state=ScanState.INVALID,
                    raw=raw,
                    message=MESSAGE_NOT_REGISTERED,
                    error_type='not_registered'
                )
                self.current = None
                self.logger.info(f"Unregistered guest scanned: {validation['invitee_id']}")
            else:
                result = ScanResult(state=ScanState.MATCHED, raw=raw, invitee=invitee)
                self.current = invitee
                self.logger.info(f"Guest matched: {invitee.id}")

        self.state = result.state
        self.last_result = result
        return result

    def confirm_admission(self) -> Dict[str, Any]:
        """
        Record the entry of the currently matched guest and update the
        local copy so the screen reflects it without reloading the list.

        Returns:
            Dict[str, Any]: Admission result
        """
        if self.state != ScanState.MATCHED or self.current is None:
            return {
                'success': False,
                'error': 'No matched guest to admit',
                'error_type': 'no_match'
            }

        if self.current.admitted:
            return {
                'success': False,
                'error': f'{self.current.full_name} was already admitted',
                'error_type': 'already_admitted',
                'invitee': self.current
            }

        result = self.invitee_manager.mark_admitted(self.current.id)

        admitted = result.get('invitee')
        if admitted is not None and admitted.admitted:
            self.current.admitted = True
            self.current.admitted_at = admitted.admitted_at
            result['invitee'] = self.current

        if result['success']:
            result['message'] = MESSAGE_ADMITTED

        return result


class ScanManager:
    """
    Holder of the live scan session. There is a single operator, so opening
    a scanner replaces whatever session was open before.
    """

    def __init__(self, invitee_manager: InviteeManager, qr_generator: QRGenerator,
                 duplicate_window_seconds: float = 3):
        self.invitee_manager = invitee_manager
        self.qr_generator = qr_generator
        self.duplicate_window_seconds = duplicate_window_seconds
        self.logger = logging.getLogger(__name__)

        self._sessions: Dict[str, ScanSession] = {}
        self._lock = threading.Lock()

    def open_session(self) -> ScanSession:
        """Start a scan session with a fresh snapshot, dropping any earlier session."""
        session = ScanSession(
            self.invitee_manager,
            self.qr_generator,
            self.duplicate_window_seconds
        )

        with self._lock:
            replaced = len(self._sessions)
            self._sessions = {session.session_id: session}

        if replaced:
            self.logger.info(f"Scan session {session.session_id} replaced {replaced} earlier session(s)")

        return session

    def get_session(self, session_id: Optional[str]) -> Optional[ScanSession]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def close_session(self, session_id: Optional[str]) -> None:
        if not session_id:
            return
        with self._lock:
            self._sessions.pop(session_id, None)

    @property
    def open_sessions(self) -> int:
        with self._lock:
            return len(self._sessions)
