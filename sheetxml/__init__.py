"""Spreadsheet to XML Converter Package.

This package converts Excel workbooks into XML documents. It includes
features such as:
- Display-text extraction that preserves leading zeros and date formatting
- XML assembly with an optional caller-supplied header section
- AES-256 encryption for secure file storage
- Structured audit logging

The HTTP upload layer is not part of this package; callers use
``ExcelToXMLConverter`` directly or the ``sheetxml`` command line tool.
"""

__version__ = "1.0.0"
__author__ = "Converter-X Team"
__license__ = "MIT"
