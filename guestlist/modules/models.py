"""
Data Models Module - Guest Check-in System

Shared record types for the guest list. The invitee record is the only
entity in the system; every storage backend, the scanner and the export
modules exchange it in the shape defined here.
"""

import json
from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class GuestType(str, Enum):
    """Guest categories. Affects display styling and the card badge."""
    INVITED = 'INVITED'
    PROMOTED = 'PROMOTED'

    @classmethod
    def parse(cls, value: Any, default: Optional['GuestType'] = None) -> Optional['GuestType']:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default


def build_qr_payload(invitee_id: str) -> str:
    """Serialized reference embedded in an invitee's QR code."""
    return json.dumps({'id': invitee_id})


@dataclass
class Invitee:
    """Data structure for one guest list record."""
    id: str
    full_name: str
    guest_type: GuestType = GuestType.INVITED
    qr_payload: Optional[str] = ''
    admitted: bool = False
    admitted_at: Optional[str] = None
    national_id: Optional[str] = None

    @property
    def is_promoted(self) -> bool:
        return self.guest_type == GuestType.PROMOTED

    @property
    def has_qr(self) -> bool:
        return bool(self.qr_payload)

    def effective_qr_payload(self) -> str:
        # Cards of guests without a stored payload still get a scannable code
        return self.qr_payload or build_qr_payload(self.id)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['guest_type'] = self.guest_type.value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Invitee':
        national_id = data.get('national_id')
        if isinstance(national_id, str):
            national_id = national_id.strip() or None

        return cls(
            id=str(data['id']),
            full_name=str(data.get('full_name') or ''),
            guest_type=GuestType.parse(data.get('guest_type'), GuestType.INVITED),
            qr_payload=data.get('qr_payload') or '',
            admitted=bool(data.get('admitted', False)),
            admitted_at=data.get('admitted_at'),
            national_id=national_id
        )
