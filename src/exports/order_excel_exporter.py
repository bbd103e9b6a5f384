"""
Order Excel Exporter
Renders flattened order records into an .xlsx workbook for download.

Columns follow config.EXPORT_COLUMNS. Records come from
orders.reporting.export_records; a None record becomes a blank separator row.
"""
from io import BytesIO
from typing import Any, Dict, Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font

import config
from sheets.store import get_column_letter

XLSX_MEDIA_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

# Record keys, in EXPORT_COLUMNS order
RECORD_KEYS = [
    'serial',
    'status',
    'branch',
    'requestedBy',
    'createdAt',
    'productCode',
    'productName',
    'category',
    'quantity',
    'unitPrice',
    'subtotal',
]


class OrderExcelExporter:
    """Builds the export workbook in memory."""

    COLUMNS = config.EXPORT_COLUMNS

    def __init__(self, sheet_title: str = 'Orders'):
        self.sheet_title = sheet_title

    def render(self, records: Iterable[Optional[Dict[str, Any]]]) -> bytes:
        """
        Write a header row followed by one row per record.

        Returns:
            The workbook as .xlsx bytes
        """
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = self.sheet_title

        sheet.append([header for header, _ in self.COLUMNS])
        for cell in sheet[1]:
            cell.font = Font(bold=True)
        for idx, (_, width) in enumerate(self.COLUMNS, start=1):
            sheet.column_dimensions[get_column_letter(idx)].width = width

        for record in records:
            if record is None:
                sheet.append([])
                continue
            sheet.append([record.get(key, '') for key in RECORD_KEYS])

        buffer = BytesIO()
        workbook.save(buffer)
        return buffer.getvalue()
