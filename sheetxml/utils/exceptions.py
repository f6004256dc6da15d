"""Custom exceptions for the spreadsheet to XML converter."""

from typing import Optional


class ConverterError(Exception):
    """Base exception for conversion operations."""

    error_code = "CONVERSION_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        if error_code is not None:
            self.error_code = error_code


class WorkbookReadError(ConverterError):
    """Raised when a file cannot be parsed as a spreadsheet."""

    error_code = "WORKBOOK_READ_ERROR"


class SheetNotFoundError(ConverterError):
    """Raised when a requested sheet does not exist in the workbook."""

    error_code = "SHEET_NOT_FOUND"

    def __init__(self, sheet_name: str, available: Optional[list] = None) -> None:
        message = f'Sheet "{sheet_name}" not found in workbook'
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message)
        self.sheet_name = sheet_name
        self.available = list(available or [])


class EmptyDataError(ConverterError):
    """Raised when a sheet yields no data rows."""

    error_code = "EMPTY_DATA"


class InvalidHeaderFieldError(ConverterError):
    """Raised for malformed caller-supplied header metadata."""

    error_code = "INVALID_HEADER_FIELD"

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Error processing header field {key}: {reason}")
        self.key = key


class CipherError(ConverterError):
    """Raised when encryption or decryption fails."""

    error_code = "CIPHER_ERROR"


class ConfigurationError(ConverterError):
    """Raised for configuration-related errors."""

    error_code = "CONFIGURATION_ERROR"
