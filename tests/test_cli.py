import pytest

from smb_cashflow import __version__
from smb_cashflow.cli import main


@pytest.fixture
def workspace(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "revenue.csv").write_text(
        "date,revenue,order_count,product_count\n"
        "2025-03-01,1180,2,3\n"
        "2025-03-02,590,1,1\n",
        encoding="utf-8",
    )
    (data / "vat.csv").write_text(
        "date,amount,description\n2025-03-01,1180,Rent\n", encoding="utf-8"
    )
    (data / "payroll.csv").write_text(
        "month,year,gross_salary,employer_costs\n3,2025,9000,1500\n",
        encoding="utf-8",
    )
    config = tmp_path / "smb_cashflow_config.toml"
    config.write_text(
        """
[store]
id = 1
name = "Test store"

[sources]
revenue = "data/revenue.csv"
vat_deductible_expenses = "data/vat.csv"
payroll = "data/payroll.csv"
""",
        encoding="utf-8",
    )
    return tmp_path


def _base_args(workspace) -> list[str]:
    return [
        "--config",
        str(workspace / "smb_cashflow_config.toml"),
        "--month",
        "3",
        "--year",
        "2025",
        "--today",
        "2025-03-15",
    ]


def test_version(capsys) -> None:
    main(["--version"])

    assert __version__ in capsys.readouterr().out


def test_table_output(workspace, capsys) -> None:
    main(
        _base_args(workspace)
        + ["--marketing", "2025-03-02", "marketing_google", "80"]
    )

    out = capsys.readouterr().out
    assert "Test store" in out
    assert "2025-03" in out
    assert "=== Daily cash-flow ledger ===" in out
    assert "=== Monthly summary ===" in out
    assert "=== Forecast details ===" in out
    assert "Net VAT" in out
    assert "FORECAST 2025-03-31" in out


def test_no_forecast(workspace, capsys) -> None:
    main(_base_args(workspace) + ["--no-forecast"])

    out = capsys.readouterr().out
    assert "FORECAST" not in out
    assert "=== Forecast details ===" not in out


def test_csv_output(workspace) -> None:
    output = workspace / "out"

    main(_base_args(workspace) + ["--display-mode", "csv", "--output", str(output)])

    names = sorted(p.name.split("_")[0] for p in output.glob("*.csv"))
    assert names == ["forecast", "ledger", "summary"]


@pytest.mark.parametrize(
    "extra",
    [
        ["--month", "13"],
        ["--today", "yesterday"],
        ["--marketing", "2025-03-02", "salary", "10"],
    ],
)
def test_invalid_arguments_exit_with_an_error(workspace, extra) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(_base_args(workspace) + extra)

    assert excinfo.value.code == 2


def test_missing_config_exits_with_an_error(tmp_path) -> None:
    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path / "missing.toml")])


def test_missing_optional_source_is_a_warning(workspace, capsys) -> None:
    """Only the revenue file is mandatory; other files degrade to zero."""
    config = workspace / "smb_cashflow_config.toml"
    config.write_text(
        config.read_text(encoding="utf-8")
        + 'supplier_costs = "data/missing.csv"\n',
        encoding="utf-8",
    )
    (workspace / "data" / "payroll.csv").unlink()

    main(_base_args(workspace))

    out = capsys.readouterr().out
    assert "Warning: supplier_costs: Data file not found" in out
    assert "Warning: payroll: Data file not found" in out
    assert "=== Daily cash-flow ledger ===" in out
    assert "FORECAST 2025-03-31" in out


def test_missing_revenue_file_exits_with_an_error(workspace) -> None:
    (workspace / "data" / "revenue.csv").unlink()

    with pytest.raises(SystemExit) as excinfo:
        main(_base_args(workspace))

    assert excinfo.value.code == 2
