"""Structured audit trail.

Every record is one JSON object per log line with the fields timestamp,
event_type, user_id, action, status and details. A conversion writes exactly
one record (conversion or error); cipher and cleanup steps add their own.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional
import json

from .logger import setup_logger

if TYPE_CHECKING:
    from ..models.schemas import ConversionResult


class AuditLogger:
    def __init__(self, log_file: Optional[str] = None):
        from ..config import Config
        self.logger = setup_logger(
            "audit",
            log_file or Config.LOG_FILE_PATH,
            debug=Config.DEBUG
        )

    def _format_message(self,
        event_type: str,
        user_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        status: str = "success"
    ) -> str:
        audit_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": event_type,
            "user_id": user_id,
            "action": action,
            "status": status,
            "details": details or {}
        }
        return json.dumps(audit_data, default=str)

    def _write(self, message: str, status: str) -> None:
        if status == "success":
            self.logger.info(message)
        else:
            self.logger.error(message)

    def log_file_operation(self,
        user_id: str,
        action: str,
        file_name: str,
        file_size: int,
        status: str = "success",
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log creation or removal of a file the converter owns."""
        file_details = {
            "file_name": file_name,
            "file_size": file_size,
            **(details or {})
        }
        self._write(self._format_message("file_operation", user_id, action, file_details, status), status)

    def log_conversion_event(self,
        user_id: str,
        input_file: str,
        result: "ConversionResult"
    ) -> None:
        """Log a finished conversion with its result summary.

        The details carry the input path plus every ``ConversionResult`` field
        (rows_processed, conversion_time_ms, output_file, sheet_name, columns,
        encrypted).
        """
        conversion_details = {
            "input_file": input_file,
            **result.model_dump()
        }
        message = self._format_message(
            "conversion",
            user_id,
            "convert_excel_to_xml",
            conversion_details
        )
        self.logger.info(message)

    def log_cipher_event(self,
        user_id: str,
        action: str,
        input_file: str,
        output_file: str,
        size: int
    ) -> None:
        """Log a file encryption or decryption."""
        cipher_details = {
            "input_file": input_file,
            "output_file": output_file,
            "size": size
        }
        self.logger.info(self._format_message("security", user_id, action, cipher_details))

    def log_error(self,
        user_id: str,
        action: str,
        error: Exception,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Log error events."""
        error_details = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            **(details or {})
        }
        message = self._format_message(
            "error",
            user_id,
            action,
            error_details,
            "error"
        )
        self.logger.error(message)

# Create singleton instance
audit_logger = AuditLogger()
