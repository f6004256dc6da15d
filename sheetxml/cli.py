"""Command line interface for the spreadsheet to XML converter.

Usage examples:

    sheetxml convert report.xlsx -o report.xml --header "Bank Code=044"
    sheetxml convert report.xlsx                # writes OUTPUT_DIR/report.xml
    sheetxml convert report.xlsx -o report.xml --encrypt
    sheetxml convert report.xlsx -o report.xml --request '{"header_fields": [{"tagName": "A", "tagValue": "1"}]}'
    sheetxml decrypt report.xml.enc -o report.xml
    sheetxml validate report.xlsx
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from . import __version__
from .config import config
from .models.schemas import ConversionRequest, HeaderField
from .utils.converter import ExcelToXMLConverter
from .utils.encryption import AESEncryption
from .utils.exceptions import ConverterError
from .utils.logger import configure_logging


def header_field(text: str) -> HeaderField:
    """Parse a NAME=VALUE command line argument."""
    name, sep, value = text.partition("=")
    if not sep or not name.strip():
        raise argparse.ArgumentTypeError(f"Header fields must look like NAME=VALUE, got: {text}")
    return HeaderField(name=name.strip(), value=value)


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="sheetxml",
        description=config.PROJECT_NAME
    )
    parser.add_argument('--version', action='version', version=f"sheetxml {__version__}")
    parser.add_argument(
        '--log-level',
        default=None,
        help='Logging level (defaults to LOG_LEVEL from the environment)'
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    convert = subparsers.add_parser('convert', help='Convert a worksheet to XML')
    convert.add_argument('input', help='Excel file to convert (.xlsx or .xls)')
    convert.add_argument(
        '--output', '-o',
        help='Path of the XML file to write (defaults to OUTPUT_DIR/<input name>.xml)'
    )
    convert.add_argument('--sheet', help='Worksheet name (defaults to the first sheet)')
    convert.add_argument(
        '--header',
        action='append',
        type=header_field,
        default=[],
        metavar='NAME=VALUE',
        help='Header field to add to the XML header section (repeatable, order is kept)'
    )
    convert.add_argument(
        '--request',
        help='JSON request with header_fields, sheet_name and encrypt_output'
    )
    convert.add_argument(
        '--encrypt',
        action='store_true',
        help='Encrypt the output with ENCRYPTION_KEY and write <output>.enc'
    )
    convert.add_argument('--user', default='system', help='User id recorded in the audit log')

    decrypt = subparsers.add_parser('decrypt', help='Decrypt an encrypted XML file')
    decrypt.add_argument('input', help='Encrypted file (.xml.enc)')
    decrypt.add_argument(
        '--output', '-o',
        help='Path of the decrypted file (defaults to OUTPUT_DIR/<input name without .enc>)'
    )

    validate = subparsers.add_parser('validate', help='Check that a file can be converted')
    validate.add_argument('input', help='Excel file to validate')

    return parser


def _build_request(parsed_args) -> ConversionRequest:
    request = ConversionRequest()
    if parsed_args.request:
        request = ConversionRequest.model_validate(json.loads(parsed_args.request))

    header_fields = list(request.header_fields or []) + list(parsed_args.header)
    return ConversionRequest(
        header_fields=header_fields or None,
        sheet_name=parsed_args.sheet or request.sheet_name,
        encrypt_output=parsed_args.encrypt or request.encrypt_output
    )


def _run_convert(parsed_args) -> int:
    request = _build_request(parsed_args)
    cipher = AESEncryption.from_config() if request.encrypt_output else None
    converter = ExcelToXMLConverter(cipher=cipher)
    output = parsed_args.output or config.get_output_path(Path(parsed_args.input).stem + ".xml")

    result = converter.convert(
        input_file=parsed_args.input,
        output_file=output,
        header_fields=request.header_fields,
        sheet_name=request.sheet_name,
        encrypt_output=request.encrypt_output,
        user_id=parsed_args.user
    )
    print(json.dumps(result.model_dump(by_alias=True)))
    return 0


def _run_decrypt(parsed_args) -> int:
    output = parsed_args.output or config.get_output_path(Path(parsed_args.input).stem)
    AESEncryption.from_config().decrypt_file(parsed_args.input, output)
    print(f"Decrypted {parsed_args.input} to {output}")
    return 0


def _run_validate(parsed_args) -> int:
    if ExcelToXMLConverter().validate_excel_file(parsed_args.input):
        print(f"{parsed_args.input}: valid")
        return 0
    print(f"{parsed_args.input}: invalid", file=sys.stderr)
    return 1


COMMANDS = {
    'convert': _run_convert,
    'decrypt': _run_decrypt,
    'validate': _run_validate,
}


def main(args: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    configure_logging(parsed_args.log_level)

    try:
        return COMMANDS[parsed_args.command](parsed_args)
    except (ConverterError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: Invalid request data format: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
