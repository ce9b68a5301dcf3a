"""Tests for the run report."""

import logging

from fuzzhead.report import RunReport, Severity


class TestRunReport:
    def given_report_with_entries(self):
        self.report = RunReport()
        self.report.info("started")
        self.report.warning("skipped", method="Foo.bar")
        self.report.error("failed")
        self.report.error("failed again")

    def test_summary_counts_by_severity(self):
        self.given_report_with_entries()
        summary = self.report.summary()
        assert summary.total == 4
        assert summary.errors == 2
        assert summary.warnings == 1
        assert summary.by_level == {"info": 1, "warning": 1, "error": 2}
        assert summary.to_dict() == {"totalLogs": 4, "errors": 2, "warnings": 1}

    def test_transcript_is_newline_joined(self):
        report = RunReport()
        report.line("one")
        report.line("two")
        assert report.transcript() == "one\ntwo"

    def test_append_to_last_extends_line(self):
        report = RunReport()
        report.line("  -> Calling Foo.bar()... ")
        report.append_to_last("✅ Success")
        assert report.lines == ["  -> Calling Foo.bar()... ✅ Success"]

    def test_entries_keep_data(self):
        self.given_report_with_entries()
        entry = self.report.entries[1]
        assert entry.severity is Severity.WARNING
        assert entry.data == {"method": "Foo.bar"}
        assert entry.timestamp

    def test_reports_are_independent(self):
        first = RunReport()
        second = RunReport()
        first.error("only in first")
        first.line("only in first")
        assert second.summary().total == 0
        assert second.transcript() == ""

    def test_entries_are_forwarded_to_logging(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fuzzhead.report"):
            RunReport().warning("watch out")
        assert "watch out" in caplog.text
