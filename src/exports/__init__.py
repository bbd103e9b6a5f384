"""
Exports module for the Branch Order Portal
Contains exporters for downloadable order files
"""

from .order_excel_exporter import OrderExcelExporter, XLSX_MEDIA_TYPE

__all__ = ['OrderExcelExporter', 'XLSX_MEDIA_TYPE']
