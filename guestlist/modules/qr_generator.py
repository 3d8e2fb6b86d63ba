"""
QR Code Generator Module - Guest Check-in System

This module handles QR payload encoding/decoding and QR image rendering
for the guest list. The payload is the plain JSON object {"id": ...};
there is no version field or checksum.

Features:
- Payload serialization for an invitee
- Payload parsing and validation for scanned codes
- QR code image rendering (PNG bytes or base64)
"""

import qrcode
import io
import base64
import json
import logging
from typing import Any, Dict, Mapping, Union

from guestlist.modules.models import build_qr_payload

ERROR_CORRECTION_LEVELS = {
    'L': qrcode.constants.ERROR_CORRECT_L,  # ~7% error correction
    'M': qrcode.constants.ERROR_CORRECT_M,  # ~15% error correction
    'Q': qrcode.constants.ERROR_CORRECT_Q,  # ~25% error correction
    'H': qrcode.constants.ERROR_CORRECT_H   # ~30% error correction
}


class QRGenerator:
    """
    QR code helper for invitee payloads and images.
    """

    def __init__(self, box_size: int = 10, border: int = 4, error_correct: str = 'M'):
        """Initialize the QR code generator with rendering settings."""
        self.logger = logging.getLogger(__name__)

        self.default_settings = {
            'version': 1,  # Grows automatically with fit=True
            'error_correction': ERROR_CORRECTION_LEVELS.get(error_correct, qrcode.constants.ERROR_CORRECT_M),
            'box_size': box_size,
            'border': border,
            'fill_color': 'black',
            'back_color': 'white'
        }

    @staticmethod
    def build_payload(invitee_id: str) -> str:
        return build_qr_payload(invitee_id)

    def parse_payload(self, raw: Union[str, bytes, Mapping[str, Any], None]) -> Dict[str, Any]:
        """
        Validate and decode scanned QR data.

        Args:
            raw: Decoded text from the reader, or an already structured payload

        Returns:
            dict: {'valid': True, 'invitee_id': ...} or
                  {'valid': False, 'error': ..., 'error_type': 'format_error'|'missing_field'}
        """
        # Reader result objects carry the decoded text under 'text'
        if isinstance(raw, Mapping) and 'text' in raw and 'id' not in raw:
            raw = raw['text']

        if isinstance(raw, bytes):
            raw = raw.decode('utf-8', errors='replace')

        if isinstance(raw, Mapping):
            decoded_data = raw
        else:
            try:
                decoded_data = json.loads(raw)
            except (TypeError, ValueError):
                return {
                    'valid': False,
                    'error': 'Invalid QR code format',
                    'error_type': 'format_error'
                }

        if not isinstance(decoded_data, Mapping):
            return {
                'valid': False,
                'error': 'Invalid QR code format',
                'error_type': 'format_error'
            }

        invitee_id = decoded_data.get('id')
        if not invitee_id or isinstance(invitee_id, (dict, list, bool)):
            return {
                'valid': False,
                'error': 'Missing required field: id',
                'error_type': 'missing_field'
            }

        return {
            'valid': True,
            'invitee_id': str(invitee_id),
            'data': dict(decoded_data)
        }

    def generate_png(self, data: str) -> bytes:
        """
        Render QR data as PNG bytes.

        Args:
            data (str): Content to encode

        Returns:
            bytes: PNG image
        """
        img = self.make_image(data)

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        return buffer.getvalue()

    def generate_base64(self, data: str) -> str:
        return base64.b64encode(self.generate_png(data)).decode()

    def make_image(self, data: str, box_size: int = None):
        """
        Build a Pillow image for QR data.

        Args:
            data (str): Content to encode
            box_size (int): Override for the module size in pixels

        Returns:
            PIL.Image.Image: RGB QR code image
        """
        settings = self.default_settings
        qr = qrcode.QRCode(
            version=settings['version'],
            error_correction=settings['error_correction'],
            box_size=box_size or settings['box_size'],
            border=settings['border']
        )

        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(
            fill_color=settings['fill_color'],
            back_color=settings['back_color']
        )
        return img.get_image().convert('RGB')
