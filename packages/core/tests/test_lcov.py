"""Tests for the lcov / genhtml process wrappers."""

import subprocess

import pytest

from covlens_core.errors import LcovError
from covlens_core.lcov import genhtml, list_detail, merge, parse_total, summarize, total_coverage

SUMMARY_OUTPUT = (
    "Reading tracefile /tmp/covlens/lcov.info\r\n"
    "Summary coverage rate:\r\n"
    "  lines......: 82.5% (165 of 200 lines)\r\n"
    "  functions..: 90.0% (9 of 10 functions)\r\n"
    "  branches...: no data found\r\n"
)

LIST_OUTPUT = """Reading tracefile /tmp/covlens/lcov.info
                |Lines       |Functions  |Branches
Filename        |Rate     Num|Rate    Num|Rate     Num
================================================
src/a.c         |80.0%     10| 100%     2|    -      0
src/b.c         |90.0%     10| 100%     1|    -      0
================================================
          Total:|85.0%     20| 100%     3|    -      0
"""


def _completed(stdout="", returncode=0):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout)


@pytest.fixture
def mock_run(mocker):
    return mocker.patch("covlens_core.lcov.subprocess.run", return_value=_completed())


class TestMerge:
    def test_adds_each_tracefile_in_order(self, mock_run, tmp_path):
        merged = merge(["one.info", "two.info", "three.info"], tmp_path)

        command = mock_run.call_args.args[0]
        assert command[0] == "lcov"
        assert command[1:7] == [
            "--add-tracefile",
            "one.info",
            "--add-tracefile",
            "two.info",
            "--add-tracefile",
            "three.info",
        ]
        assert command[7:9] == ["--output-file", str(tmp_path / "lcov.info")]
        assert command[-2:] == ["--rc", "lcov_branch_coverage=1"]
        assert merged == tmp_path / "lcov.info"

    def test_creates_output_directory(self, mock_run, tmp_path):
        out = tmp_path / "nested" / "dir"
        merge(["a.info"], out)
        assert out.is_dir()

    def test_empty_input_rejected(self, mock_run, tmp_path):
        with pytest.raises(ValueError):
            merge([], tmp_path)
        mock_run.assert_not_called()

    def test_nonzero_exit_is_fatal(self, mock_run, tmp_path):
        mock_run.return_value = _completed("lcov: ERROR: no valid records", returncode=255)
        with pytest.raises(LcovError) as exc_info:
            merge(["a.info"], tmp_path)
        assert exc_info.value.returncode == 255
        assert "no valid records" in str(exc_info.value)

    def test_missing_executable(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError("lcov")
        with pytest.raises(LcovError, match="not installed"):
            merge(["a.info"], tmp_path)


class TestSummarize:
    def test_drops_reading_banner(self, mock_run):
        mock_run.return_value = _completed(SUMMARY_OUTPUT)
        summary = summarize("lcov.info")
        assert summary.splitlines()[0] == "Summary coverage rate:"
        assert "Reading tracefile" not in summary
        assert "\r" not in summary

    def test_captures_stderr_with_stdout(self, mock_run):
        mock_run.return_value = _completed(SUMMARY_OUTPUT)
        summarize("lcov.info")
        kwargs = mock_run.call_args.kwargs
        assert kwargs["stdout"] == subprocess.PIPE
        assert kwargs["stderr"] == subprocess.STDOUT

    def test_command_line(self, mock_run):
        mock_run.return_value = _completed(SUMMARY_OUTPUT)
        summarize("lcov.info")
        assert mock_run.call_args.args[0] == ["lcov", "--summary", "lcov.info", "--rc", "lcov_branch_coverage=1"]


class TestListDetail:
    def test_drops_banner_total_and_separator(self, mock_run):
        mock_run.return_value = _completed(LIST_OUTPUT)
        lines = list_detail("lcov.info")
        assert len(lines) == 5
        assert lines[0].strip().startswith("|Lines")
        assert lines[2].startswith("====")
        assert lines[3].startswith("src/a.c")
        assert lines[4].startswith("src/b.c")
        assert not any("Total:" in line for line in lines)

    def test_uses_full_paths(self, mock_run):
        mock_run.return_value = _completed(LIST_OUTPUT)
        list_detail("lcov.info")
        assert "--list-full-path" in mock_run.call_args.args[0]

    def test_nonzero_exit_is_fatal(self, mock_run):
        mock_run.return_value = _completed("boom", returncode=1)
        with pytest.raises(LcovError):
            list_detail("lcov.info")


class TestParseTotal:
    def test_uses_line_counts(self):
        assert parse_total("Summary coverage rate:\n  lines......: 82.5% (165 of 200 lines)") == 82.5

    def test_keeps_full_precision(self):
        assert parse_total("  lines......: 66.7% (2 of 3 lines)") == pytest.approx(200 / 3)

    def test_just_below_a_round_number_stays_below(self):
        total = parse_total("  lines......: 90.0% (179999 of 200000 lines)")
        assert total < 90.0
        assert total == pytest.approx(89.9995)

    def test_lcov2_dotted_label(self):
        assert parse_total("  lines.......: 100.0% (3 of 3 lines)") == 100.0

    def test_single_line(self):
        assert parse_total("  lines......: 0.0% (0 of 1 line)") == 0.0

    def test_no_data_found(self):
        assert parse_total("  lines......: no data found") == 0.0

    def test_missing_lines_row_raises(self):
        with pytest.raises(LcovError):
            parse_total("Summary coverage rate:\n  functions..: 90.0% (9 of 10 functions)")

    def test_total_coverage_runs_summary(self, mock_run):
        mock_run.return_value = _completed(SUMMARY_OUTPUT)
        total = total_coverage("lcov.info")
        assert total == 82.5
        assert 0 <= total <= 100


class TestGenhtml:
    def test_runs_in_working_directory(self, mock_run, tmp_path):
        out = genhtml(["/abs/a.info", "/abs/b.info"], tmp_path / "html", cwd="sub/dir")

        command = mock_run.call_args.args[0]
        assert command[:3] == ["genhtml", "/abs/a.info", "/abs/b.info"]
        assert command[-2:] == ["--output-directory", str((tmp_path / "html").resolve())]
        assert "lcov_branch_coverage=1" in command
        assert mock_run.call_args.kwargs["cwd"] == "sub/dir"
        assert out == (tmp_path / "html").resolve()

    def test_nonzero_exit_is_fatal(self, mock_run, tmp_path):
        mock_run.return_value = _completed("genhtml: ERROR", returncode=2)
        with pytest.raises(LcovError):
            genhtml(["a.info"], tmp_path)
