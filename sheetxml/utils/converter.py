from enum import Enum
from pathlib import Path
from typing import List, Optional, Union
import logging
import time

from ..config import config
from ..models.schemas import ConversionResult
from .encryption import AESEncryption
from .exceptions import ConfigurationError
from .extractor import extract_records
from .workbook import load_workbook
from .xml_builder import HeaderFields, build_xml_tree, serialize_xml

log = logging.getLogger(__name__)


class ConversionStage(str, Enum):
    """Linear progress of one conversion; failure can follow any stage."""
    START = "start"
    FILE_LOADED = "file_loaded"
    SHEET_SELECTED = "sheet_selected"
    EXTRACTED = "extracted"
    ASSEMBLED = "assembled"
    SERIALIZED = "serialized"
    ENCRYPTED = "encrypted"
    DONE = "done"


def encrypted_path_for(output_file: Path) -> Path:
    """Path of the encrypted counterpart, e.g. report.xml -> report.xml.enc."""
    return output_file.with_name(output_file.name + ".enc")


class ExcelToXMLConverter:
    def __init__(self,
        cipher: Optional[AESEncryption] = None,
        audit=None,
        settings=None
    ):
        self.cipher = cipher
        self.settings = settings or config
        self._audit = audit

    @property
    def audit(self):
        if self._audit is None:
            from .audit import audit_logger
            self._audit = audit_logger
        return self._audit

    def _remove_file(self, path: Path, user_id: str) -> None:
        if not path.exists():
            return
        size = path.stat().st_size
        path.unlink()
        self.audit.log_file_operation(
            user_id=user_id,
            action="delete",
            file_name=str(path),
            file_size=size,
            details={"file_type": path.suffix}
        )

    def convert(self,
        input_file: Union[str, Path],
        output_file: Union[str, Path],
        header_fields: Optional[HeaderFields] = None,
        sheet_name: Optional[str] = None,
        encrypt_output: bool = False,
        user_id: str = "system",
        remove_input: bool = False
    ) -> ConversionResult:
        """Convert Excel file to XML with optional header fields and encryption.

        Writes the XML document to ``output_file``. With ``encrypt_output`` the
        document is encrypted to ``<output_file>.enc`` and the plaintext file is
        removed. On failure no output file is left behind. ``remove_input``
        hands ownership of a temporary input file to the converter, which then
        deletes it on every exit path.

        Raises:
            FileNotFoundError: the input file does not exist.
            WorkbookReadError: the input cannot be parsed as a spreadsheet.
            SheetNotFoundError: ``sheet_name`` is not in the workbook.
            EmptyDataError: the sheet has no data rows.
            InvalidHeaderFieldError: a header field cannot be rendered.
            CipherError: encryption failed.
            ConfigurationError: encryption was requested without a cipher.
        """
        start_time = time.perf_counter()
        input_file = Path(input_file)
        output_file = Path(output_file)
        encrypted_output = encrypted_path_for(output_file)

        stage = ConversionStage.START
        written: List[Path] = []

        try:
            if encrypt_output and self.cipher is None:
                raise ConfigurationError("Encryption requested but no cipher is configured")

            workbook = load_workbook(input_file)
            stage = ConversionStage.FILE_LOADED

            grid = workbook.get_sheet(sheet_name)
            stage = ConversionStage.SHEET_SELECTED

            columns, records = extract_records(grid)
            stage = ConversionStage.EXTRACTED

            root = build_xml_tree(
                records,
                header_fields,
                root_tag=self.settings.XML_ROOT_ELEMENT,
                header_tag=self.settings.XML_HEADER_ELEMENT,
                body_tag=self.settings.XML_BODY_ELEMENT,
                row_tag=self.settings.XML_ROW_ELEMENT
            )
            stage = ConversionStage.ASSEMBLED

            xml_content = serialize_xml(root)
            written.append(output_file)
            with open(output_file, 'wb') as f:
                f.write(xml_content)
            stage = ConversionStage.SERIALIZED

            final_output = output_file
            if encrypt_output:
                written.append(encrypted_output)
                self.cipher.encrypt_file(output_file, encrypted_output, user_id=user_id)
                output_file.unlink()
                final_output = encrypted_output
                stage = ConversionStage.ENCRYPTED

            conversion_time = int(round((time.perf_counter() - start_time) * 1000))

            result = ConversionResult(
                rows_processed=len(records),
                conversion_time_ms=conversion_time,
                output_file=str(final_output),
                sheet_name=grid.name,
                columns=columns,
                encrypted=encrypt_output
            )
            self.audit.log_conversion_event(
                user_id=user_id,
                input_file=str(input_file),
                result=result
            )
            stage = ConversionStage.DONE
            log.info(f"Converted {input_file} to {final_output}: {len(records)} rows in {conversion_time}ms")
            return result

        except Exception as e:
            for path in written:
                self._remove_file(path, user_id)

            self.audit.log_error(
                user_id=user_id,
                action="convert_excel_to_xml",
                error=e,
                details={
                    "input_file": str(input_file),
                    "output_file": str(output_file),
                    "sheet_name": sheet_name,
                    "encrypted": encrypt_output,
                    "last_stage": stage.value
                }
            )
            raise

        finally:
            if remove_input:
                self._remove_file(input_file, user_id)

    def validate_excel_file(self, file_path: Union[str, Path]) -> bool:
        """Validate Excel file format and content."""
        file_path = Path(file_path)
        try:
            # Check file extension
            if not self.settings.validate_file_extension(file_path.name):
                log.error(f"Invalid file extension: {file_path.suffix}")
                return False

            # Check file size
            max_size = self.settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024
            if file_path.stat().st_size > max_size:
                log.error(f"File size exceeds {self.settings.MAX_UPLOAD_SIZE_MB}MB limit")
                return False

            # The first sheet must yield at least one record
            workbook = load_workbook(file_path)
            extract_records(workbook.get_sheet())
            return True

        except Exception as e:
            self.audit.log_error(
                user_id="system",
                action="validate_excel_file",
                error=e,
                details={"file": str(file_path)}
            )
            log.error(f"Excel validation failed: {str(e)}")
            return False
