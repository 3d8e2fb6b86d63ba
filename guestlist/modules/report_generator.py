"""
Report Generator Module - Guest Check-in System

This module exports the guest list for offline use: a CSV file for quick
sharing and an Excel workbook with a statistics sheet for event staff.

Features:
- CSV export
- Excel export with statistics sheet
- In-memory output suitable for direct download
"""

import io
import logging
from datetime import datetime
from typing import Any, Dict, List

import pandas as pd

from guestlist.modules.invitee_manager import InviteeManager
from guestlist.modules.models import Invitee

EXPORT_COLUMNS = {
    'id': 'ID',
    'full_name': 'Full Name',
    'guest_type': 'Guest Type',
    'national_id': 'National ID',
    'qr_payload': 'QR Payload',
    'admitted': 'Admitted',
    'admitted_at': 'Admitted At'
}

MIMETYPES = {
    'csv': 'text/csv',
    'xlsx': 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
}


class ReportGenerator:
    """
    Guest list exporter.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self.supported_formats = list(MIMETYPES)

    def build_dataframe(self, invitees: List[Invitee]) -> pd.DataFrame:
        records = [invitee.to_dict() for invitee in invitees]
        df = pd.DataFrame(records, columns=list(EXPORT_COLUMNS))
        return df.rename(columns=EXPORT_COLUMNS)

    def export_guest_list(self, invitees: List[Invitee], output_format: str = 'csv') -> Dict[str, Any]:
        """
        Export the guest list.

        Args:
            invitees (List[Invitee]): Guests to export
            output_format (str): 'csv' or 'xlsx'

        Returns:
            Dict[str, Any]: Export result with file content, name and mimetype
        """
        if output_format not in self.supported_formats:
            return {
                'success': False,
                'error': f'Unsupported output format: {output_format}',
                'error_type': 'validation_error'
            }

        try:
            filename = f"guest_list_{datetime.now().strftime('%Y%m%d_%H%M%S')}.{output_format}"
            df = self.build_dataframe(invitees)

            if output_format == 'csv':
                content = df.to_csv(index=False).encode('utf-8')
            else:
                content = self._build_workbook(df, invitees)

            self.logger.info(f"Guest list exported: {filename} ({len(invitees)} records)")

            return {
                'success': True,
                'filename': filename,
                'content': content,
                'mimetype': MIMETYPES[output_format],
                'format': output_format,
                'size': len(content)
            }

        except Exception as e:
            self.logger.error(f"Guest list export failed: {str(e)}")
            return {
                'success': False,
                'error': str(e),
                'error_type': 'system_error'
            }

    def _build_workbook(self, df: pd.DataFrame, invitees: List[Invitee]) -> bytes:
        buffer = io.BytesIO()

        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, sheet_name='Guests', index=False)

            stats = InviteeManager.get_statistics(invitees)
            df_stats = pd.DataFrame(
                [{'Metric': key.replace('_', ' ').title(), 'Value': value}
                 for key, value in stats.items()]
            )
            df_stats.to_excel(writer, sheet_name='Statistics', index=False)

        return buffer.getvalue()
