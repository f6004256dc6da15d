"""Utils Package.

This package contains utility modules for:
- Workbook loading and display-text rendering
- Record extraction and XML assembly
- AES-256 encryption/decryption
- Structured audit logging
"""
