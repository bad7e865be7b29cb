# ruff: noqa: E501

from typer.testing import CliRunner

from expense_ledger.cli import EXIT_FATAL, EXIT_ROW_ERRORS, EXIT_USAGE, app
from tests.helpers.text import dedent

runner = CliRunner()


LEDGER_CSV = dedent(
    """
    date,amount,category,description
    2024-01-05,12.50,Grocery,milk
    2024-01-10,-5.00,Grocery,refund
    2024-02-01,100.00,Rent,rent
    2024-02-03,7.00,Yaght,typo
    """
)


def _write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_summary_is_printed(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)

    result = runner.invoke(app, [str(path), "--today", "2024-02-10"])

    assert result.exit_code == 0, result.output
    assert "114.50" in result.output
    assert "Grocery" in result.output
    assert "Unknown" in result.output
    assert "2024-02" in result.output
    assert "last 7 days" in result.output
    assert "Rejected rows" not in result.output


def test_row_errors_are_listed_but_do_not_fail(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV + "2024-02-04,abc,Books,bad\n")

    result = runner.invoke(app, [str(path), "--today", "2024-02-10"])

    assert result.exit_code == 0, result.output
    assert "Rejected rows (1)" in result.output
    assert "invalid_amount" in result.output


def test_fail_on_errors(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV + "2024-02-04,abc,Books,bad\n")

    result = runner.invoke(app, [str(path), "--fail-on-errors"])

    assert result.exit_code == EXIT_ROW_ERRORS


def test_strict_categories_rejects_unknown_labels(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)

    result = runner.invoke(app, [str(path), "--strict-categories", "--fail-on-errors"])

    assert result.exit_code == EXIT_ROW_ERRORS
    assert "unknown_category" in result.output


def test_missing_file_is_fatal(tmp_path):
    result = runner.invoke(app, [str(tmp_path / "missing.csv")])
    assert result.exit_code == EXIT_FATAL


def test_malformed_xml_is_fatal(tmp_path):
    path = _write(tmp_path, "ledger.xml", "<ledger><transaction></ledger>")
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == EXIT_FATAL


def test_invalid_option_value_is_a_usage_error(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)
    result = runner.invoke(app, [str(path), "--period", "week"])
    assert result.exit_code == EXIT_USAGE


def test_non_positive_window_is_a_usage_error(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)
    result = runner.invoke(app, [str(path), "--window", "0"])
    assert result.exit_code == EXIT_USAGE


def test_invalid_environment_value_is_a_usage_error(tmp_path, monkeypatch):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)
    monkeypatch.setenv("EXPENSE_LEDGER_DELIMITER", ";;")

    result = runner.invoke(app, [str(path)])

    assert result.exit_code == EXIT_USAGE


def test_dotenv_in_working_directory_is_loaded(tmp_path, monkeypatch):
    path = _write(tmp_path, "ledger.psv", LEDGER_CSV.replace(",", "|"))
    _write(tmp_path, ".env", "EXPENSE_LEDGER_DELIMITER=|\n")
    monkeypatch.chdir(tmp_path)
    # python-dotenv writes into os.environ; let monkeypatch restore it.
    monkeypatch.setenv("EXPENSE_LEDGER_DELIMITER", "")
    monkeypatch.delenv("EXPENSE_LEDGER_DELIMITER")

    result = runner.invoke(app, [str(path), "--today", "2024-02-10"])

    assert result.exit_code == 0, result.output
    assert "114.50" in result.output


def test_xml_input_and_period_option(tmp_path):
    path = _write(
        tmp_path,
        "ledger.xml",
        dedent(
            """
            <ledger>
              <transaction date="2024-01-05" amount="12.50" category="Grocery" description="milk"/>
              <transaction date="2025-03-01" amount="1.00" category="Books" description="zine"/>
            </ledger>
            """
        ),
    )

    result = runner.invoke(app, [str(path), "--period", "year", "--today", "2025-03-01"])

    assert result.exit_code == 0, result.output
    assert "2024" in result.output
    assert "2025" in result.output
    assert "13.50" in result.output


def test_empty_ledger(tmp_path):
    path = _write(tmp_path, "ledger.csv", "date,amount,category,description\n")
    result = runner.invoke(app, [str(path)])
    assert result.exit_code == 0
    assert "No valid expenses found." in result.output


def test_log_level_option_is_validated(tmp_path):
    path = _write(tmp_path, "ledger.csv", LEDGER_CSV)
    result = runner.invoke(app, [str(path), "--log-level", "chatty"])
    assert result.exit_code == EXIT_USAGE


def test_payment_methods_are_summarized(tmp_path):
    path = _write(
        tmp_path,
        "ledger.xml",
        '<ledger><transaction date="2024-01-05" amount="12.50" category="Grocery" payment-method="Visa"/></ledger>',
    )
    result = runner.invoke(app, [str(path), "--today", "2024-01-31"])

    assert result.exit_code == 0, result.output
    assert "By payment method" in result.output
    assert "Visa" in result.output
