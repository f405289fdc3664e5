"""Tests for CSV export."""

import csv
import io

import pytest

from repo_harvester.errors import ExportError
from repo_harvester.storage import CsvExporter, to_csv_text


class TestToCsvText:

    def test_header_and_rows_in_order(self):
        rows = [{"A": "1", "B": "x"}, {"A": "2", "B": "y"}]
        assert to_csv_text(rows, ["A", "B"]) == "A,B\n1,x\n2,y\n"

    def test_column_order_is_explicit(self):
        assert to_csv_text([{"A": 1, "B": 2}], ["B", "A"]) == "B,A\n2,1\n"

    def test_special_characters_are_quoted(self):
        text = to_csv_text([{"M": 'say "hi", then\nleave'}], ["M"])
        assert text == 'M\n"say ""hi"", then\nleave"\n'

    def test_round_trip_through_csv_reader(self):
        value = 'a,b "quoted"\nsecond line'
        text = to_csv_text([{"SHA": "abc", "Message": value}], ["SHA", "Message"])

        parsed = list(csv.DictReader(io.StringIO(text)))

        assert parsed == [{"SHA": "abc", "Message": value}]

    def test_missing_and_none_are_empty(self):
        text = to_csv_text([{"A": None}], ["A", "B"])
        assert text == "A,B\n,\n"

    def test_zero_is_kept(self):
        assert to_csv_text([{"A": 0}], ["A"]) == "A\n0\n"

    def test_empty_input(self):
        assert to_csv_text([], ["A"]) == ""


class TestCsvExporter:

    def test_writes_file(self, tmp_path):
        exporter = CsvExporter(tmp_path / "out")

        path = exporter.export("data.csv", [{"A": "1"}], ["A"])

        assert path == tmp_path / "out" / "data.csv"
        assert path.read_text(encoding="utf-8") == "A\n1\n"

    def test_overwrites_existing_file(self, tmp_path):
        target = tmp_path / "data.csv"
        target.write_text("old,contents\nthat,are\nlonger,than\nthe,new\n", encoding="utf-8")

        CsvExporter(tmp_path).export("data.csv", [{"A": "1"}], ["A"])

        assert target.read_text(encoding="utf-8") == "A\n1\n"

    def test_write_failure_is_wrapped(self, tmp_path):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x", encoding="utf-8")

        with pytest.raises(ExportError) as excinfo:
            CsvExporter(blocker).export("data.csv", [{"A": "1"}], ["A"])

        assert excinfo.value.path == blocker / "data.csv"
        assert isinstance(excinfo.value.cause, OSError)
