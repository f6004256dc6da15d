"""Tests for the command line interface."""

import argparse
import json
import xml.etree.ElementTree as ET

import pytest

from sheetxml.cli import create_parser, header_field, main
from sheetxml.config import Config
from sheetxml.models.schemas import ConversionRequest


class TestHeaderFieldArgument:

    def test_parses_name_and_value(self):
        field = header_field("Bank Code=044")
        assert field.name == "Bank Code"
        assert field.value == "044"

    def test_value_may_contain_equals(self):
        assert header_field("Q=a=b").value == "a=b"

    @pytest.mark.parametrize("text", ["no-separator", "=value", "  =value"])
    def test_rejects_malformed(self, text):
        with pytest.raises(argparse.ArgumentTypeError):
            header_field(text)


class TestMain:
    """Test cases for the sheetxml entry point."""

    @pytest.fixture
    def sample_file(self, write_workbook):
        return write_workbook([["ID", "Amount"], ["1", "10.50"], ["2", "20.00"]])

    def test_convert(self, sample_file, tmp_path, capsys):
        output = tmp_path / "out.xml"

        exit_code = main(["convert", str(sample_file), "-o", str(output), "--header", "Bank Code=044"])

        assert exit_code == 0
        document = ET.parse(output).getroot()
        assert document.find("HEADER/Bank_Code").text == "044"
        summary = json.loads(capsys.readouterr().out)
        assert summary["rowsProcessed"] == 2
        assert summary["outputFile"] == str(output)
        assert summary["encrypted"] is False

    def test_convert_with_json_request(self, write_workbook, tmp_path, capsys):
        path = write_workbook([["A"], ["1"]], sheets={"Data": [["B"], ["x"], ["y"]]})
        output = tmp_path / "out.xml"
        request = json.dumps({
            "header_fields": [{"tagName": "Period", "tagValue": "2024Q1"}],
            "sheet_name": "Data",
        })

        exit_code = main(["convert", str(path), "-o", str(output), "--request", request])

        assert exit_code == 0
        summary = json.loads(capsys.readouterr().out)
        assert summary["sheetName"] == "Data"
        assert summary["rowsProcessed"] == 2
        assert ET.parse(output).getroot().find("HEADER/Period").text == "2024Q1"

    def test_encrypt_then_decrypt(self, sample_file, tmp_path):
        output = tmp_path / "out.xml"
        restored = tmp_path / "restored.xml"

        assert main(["convert", str(sample_file), "-o", str(output), "--encrypt"]) == 0
        assert not output.exists()
        assert main(["decrypt", str(tmp_path / "out.xml.enc"), "-o", str(restored)]) == 0

        assert len(ET.parse(restored).getroot().findall("BODY/CALLREPORT_DATA")) == 2

    def test_empty_sheet_reports_error(self, write_workbook, tmp_path, capsys):
        path = write_workbook([["ID"]])

        assert main(["convert", str(path), "-o", str(tmp_path / "out.xml")]) == 1
        assert "Excel file is empty" in capsys.readouterr().err

    def test_missing_input_reports_error(self, tmp_path, capsys):
        assert main(["convert", str(tmp_path / "missing.xlsx"), "-o", str(tmp_path / "out.xml")]) == 1
        assert "Input file not found" in capsys.readouterr().err

    def test_malformed_request(self, sample_file, tmp_path, capsys):
        exit_code = main(["convert", str(sample_file), "-o", str(tmp_path / "out.xml"), "--request", "{bad"])
        assert exit_code == 1
        assert "Invalid request data format" in capsys.readouterr().err

    def test_malformed_header_argument(self, sample_file, tmp_path):
        with pytest.raises(SystemExit):
            main(["convert", str(sample_file), "-o", str(tmp_path / "out.xml"), "--header", "broken"])

    def test_validate(self, sample_file, write_workbook, capsys):
        assert main(["validate", str(sample_file)]) == 0
        assert main(["validate", str(write_workbook([["ID"]], name="empty.xlsx"))]) == 1

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_convert_defaults_to_output_dir(self, sample_file, tmp_path, monkeypatch, capsys):
        output_dir = tmp_path / "output"
        monkeypatch.setattr(Config, "OUTPUT_DIR", output_dir)

        assert main(["convert", str(sample_file)]) == 0

        expected = output_dir / "data.xml"
        assert expected.exists()
        assert json.loads(capsys.readouterr().out)["outputFile"] == str(expected)

    def test_decrypt_defaults_to_output_dir(self, sample_file, tmp_path, monkeypatch):
        output_dir = tmp_path / "output"
        monkeypatch.setattr(Config, "OUTPUT_DIR", output_dir)

        assert main(["convert", str(sample_file), "-o", str(tmp_path / "report.xml"), "--encrypt"]) == 0
        assert main(["decrypt", str(tmp_path / "report.xml.enc")]) == 0

        assert ET.parse(output_dir / "report.xml").getroot().tag == "CALLREPORT"

    def test_request_fields_without_name_are_skipped(self, sample_file, tmp_path):
        output = tmp_path / "out.xml"
        request = json.dumps({"header_fields": [
            {"tagName": "", "tagValue": "dropped"},
            {"tagValue": "also dropped"},
            {"tagName": "Period", "tagValue": "2024Q1"},
        ]})

        assert main(["convert", str(sample_file), "-o", str(output), "--request", request]) == 0

        header = ET.parse(output).getroot().find("HEADER")
        assert [(field.tag, field.text) for field in header] == [("Period", "2024Q1")]


class TestConversionRequest:

    def test_unnamed_header_fields_are_dropped(self):
        request = ConversionRequest.model_validate({"header_fields": [
            {"tagName": "  ", "tagValue": "x"},
            {"name": "A", "value": "1"},
        ]})
        assert [(field.name, field.value) for field in request.header_fields] == [("A", "1")]

    def test_blank_sheet_name_means_first_sheet(self):
        assert ConversionRequest(sheet_name="  ").sheet_name is None
