import json
import logging
import pytest
import structlog

from config import get_settings
from main import main


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch, tmp_path):
    """Reset cached settings and isolate from the caller's environment."""
    monkeypatch.chdir(tmp_path)
    for var in ("PAYMENTS_LOG_LEVEL", "PAYMENTS_LOG_FORMAT", "PAYMENTS_REPORT_SUMMARY"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
    # main() points the root handler at this test's captured stderr
    logging.getLogger().handlers = []
    structlog.reset_defaults()


def write_csv(tmp_path, *lines):
    csv_file = tmp_path / "transactions.csv"
    csv_file.write_text("\n".join(lines))
    return str(csv_file)


class TestCommandLine:
    """End-to-end runs through the command-line entry point."""

    def test_basic_transactions(self, tmp_path, capsys):
        path = write_csv(
            tmp_path,
            "type, client, tx, amount",
            "deposit, 1, 1, 1.0",
            "deposit, 2, 2, 2.0",
            "deposit, 1, 3, 2.0",
            "withdrawal, 1, 4, 1.5",
            "withdrawal, 2, 5, 3.0",
        )

        assert main([path]) == 0

        out = capsys.readouterr().out
        assert out == (
            "client,available,held,total,locked\n"
            "1,1.5000,0.0000,1.5000,false\n"
            "2,2.0000,0.0000,2.0000,false\n"
        )

    def test_disputes_and_chargebacks(self, tmp_path, capsys):
        path = write_csv(
            tmp_path,
            "type,client,tx,amount",
            "deposit,2,2,3.0",
            "deposit,1,1,5.0",
            "dispute,1,1,",
            "chargeback,1,1,",
            "deposit,1,3,10.0",
            "withdrawal,3,4,10.0",
            "dispute,3,4,",
            "dispute,5,99,",
        )

        assert main([path]) == 0

        captured = capsys.readouterr()
        assert captured.out == (
            "client,available,held,total,locked\n"
            "1,0.0000,0.0000,0.0000,true\n"
            "2,3.0000,0.0000,3.0000,false\n"
            "3,0.0000,0.0000,0.0000,false\n"
        )
        assert captured.err.count("Transaction rejected") == 4

    def test_json_logs_on_stderr(self, tmp_path, capsys):
        path = write_csv(tmp_path, "type,client,tx,amount", "withdrawal,1,1,5.0")

        assert main([path, "--log-format", "json"]) == 0

        err_lines = [line for line in capsys.readouterr().err.splitlines() if line.strip()]
        events = [json.loads(line) for line in err_lines]
        rejected = [e for e in events if e["event"] == "Transaction rejected"]
        assert len(rejected) == 1
        assert rejected[0]["reason"] == "insufficient_funds"
        assert rejected[0]["level"] == "warning"

    def test_log_level_from_environment(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setenv("PAYMENTS_LOG_LEVEL", "ERROR")
        path = write_csv(tmp_path, "type,client,tx,amount", "withdrawal,1,1,5.0")

        assert main([path]) == 0

        assert "Transaction rejected" not in capsys.readouterr().err

    def test_summary_logged_in_development(self, tmp_path, capsys):
        path = write_csv(tmp_path, "type,client,tx,amount", "deposit,1,1,5.0", "dispute,1,7,")

        assert main([path, "--env", "development"]) == 0

        err = capsys.readouterr().err
        assert "Processing complete" in err
        assert "transactions_recorded=1" in err
        assert "Transaction applied" in err

    def test_missing_input_exits_with_failure(self, tmp_path, capsys):
        assert main([str(tmp_path / "nope.csv")]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Input source unavailable" in captured.err

    def test_usage_error(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 2
        assert "usage: payments-engine" in capsys.readouterr().err
