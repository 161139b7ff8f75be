"""
Unit tests for analytics/reports.py — CSV encoding rules.
"""
from analytics.reports import BUSINESS_UNIT_COLUMNS, project, to_csv


class TestToCsv:
    def test_header_then_rows(self):
        out = to_csv(["id", "name"], [{"id": "1", "name": "Sales"}])
        assert out == "id,name\n1,Sales\n"

    def test_quotes_only_when_needed(self):
        out = to_csv(["a", "b", "c"], [{"a": "x,y", "b": 'say "hi"', "c": "line1\nline2"}])
        assert out.splitlines()[0] == "a,b,c"
        assert out == 'a,b,c\n"x,y","say ""hi""","line1\nline2"\n'

    def test_null_is_empty_and_bool_is_lowercase(self):
        out = to_csv(["a", "b", "c"], [{"a": None, "b": True, "c": 3}])
        assert out == "a,b,c\n,true,3\n"

    def test_missing_key_is_empty(self):
        out = to_csv(["a", "b"], [{"a": 1}])
        assert out == "a,b\n1,\n"


class TestProject:
    def test_keeps_only_report_columns(self):
        row = {c: c for c in BUSINESS_UNIT_COLUMNS}
        row["secret"] = "x"
        [out] = project(BUSINESS_UNIT_COLUMNS, [row])
        assert list(out) == BUSINESS_UNIT_COLUMNS
