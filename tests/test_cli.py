"""Smoke tests for the typer CLI against a temporary database."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from ai_commodity_index.cli import app
from ai_commodity_index.db.connection import get_connection
from ai_commodity_index.db.repositories.market_repo import MarketRepository

SEED_FILE = Path(__file__).parents[1] / "config" / "seed" / "reference_data.json"

runner = CliRunner()


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def cli_config(tmp_path) -> tuple[Path, Path]:
    """Return ``(config_path, db_path)`` for a config that points into ``tmp_path``."""
    db_path = tmp_path / "acci.db"
    config_path = tmp_path / "acci.toml"
    config_path.write_text(
        "[database]\n"
        f'db_path = "{db_path.as_posix()}"\n'
        "wal_mode = false\n"
        f'seed_file = "{SEED_FILE.as_posix()}"\n'
        "[logging]\n"
        'level = "WARNING"\n'
        'log_file = ""\n',
        encoding="utf-8",
    )
    return config_path, db_path


def _invoke(config_path: Path, *args: str):
    return runner.invoke(app, [*args, "--config", str(config_path)])


def _write_csv(path: Path, header: list[str], rows: list[list[str]]) -> Path:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


@pytest.fixture
def initialised(cli_config):
    config_path, _ = cli_config
    result = _invoke(config_path, "init-db")
    assert result.exit_code == 0, result.output
    return cli_config


class TestInitDb:
    def test_creates_and_seeds(self, cli_config):
        config_path, db_path = cli_config
        result = _invoke(config_path, "init-db")
        assert result.exit_code == 0, result.output
        assert "Seeded: 3 AI model(s), 14 commodit(ies)." in result.output
        with get_connection(str(db_path), wal_mode=False) as conn:
            assert len(MarketRepository(conn).get_commodities()) == 14

    def test_rerun_adds_nothing(self, initialised):
        config_path, _ = initialised
        result = _invoke(config_path, "init-db")
        assert "Seeded: 0 AI model(s), 0 commodit(ies)." in result.output

    def test_no_seed(self, cli_config):
        config_path, db_path = cli_config
        assert _invoke(config_path, "init-db", "--no-seed").exit_code == 0
        with get_connection(str(db_path), wal_mode=False) as conn:
            assert MarketRepository(conn).get_commodities() == []


def test_validate_config(cli_config):
    config_path, db_path = cli_config
    result = runner.invoke(app, ["validate-config", "--config", str(config_path)])
    assert result.exit_code == 0
    assert db_path.as_posix() in result.output


def test_missing_config_exits(tmp_path):
    result = runner.invoke(app, ["validate-config", "--config", str(tmp_path / "nope.toml")])
    assert result.exit_code == 1


class TestImportAndCalculate:
    def _predictions(self, tmp_path: Path, model: str = "Claude") -> Path:
        return _write_csv(
            tmp_path / "predictions.csv",
            ["ai_model", "commodity_symbol", "prediction_date", "target_date",
             "predicted_price", "confidence", "timeframe"],
            [
                [model, "XAU", "2024-01-01", "2024-04-01", "2100", "0.8", "3mo"],
                [model, "XAU", "2024-02-01", "2024-05-01", "2200", "0.7", "3mo"],
            ],
        )

    def _prices(self, tmp_path: Path) -> Path:
        return _write_csv(
            tmp_path / "prices.csv",
            ["commodity_symbol", "date", "price", "volume", "source"],
            [["XAU", "2024-04-01", "2100", "", ""], ["XAU", "2024-05-01", "2300", "", ""]],
        )

    def test_full_flow(self, initialised, tmp_path):
        config_path, _ = initialised
        result = _invoke(config_path, "import-predictions", "--file", str(self._predictions(tmp_path)))
        assert result.exit_code == 0, result.output
        assert "Imported 2 prediction(s)" in result.output

        result = _invoke(config_path, "import-prices", "--file", str(self._prices(tmp_path)))
        assert result.exit_code == 0, result.output

        result = _invoke(config_path, "calculate-index")
        assert result.exit_code == 0, result.output
        assert "ACCI:" in result.output

        result = _invoke(config_path, "fear-greed")
        assert result.exit_code == 0, result.output
        assert "Fear/Greed:" in result.output

        result = _invoke(config_path, "update-accuracy")
        assert result.exit_code == 0, result.output

        result = _invoke(config_path, "rank-models", "--period", "all")
        assert result.exit_code == 0, result.output
        assert "Claude" in result.output

        out = tmp_path / "rankings.csv"
        result = _invoke(config_path, "export-rankings", "--period", "all", "--out", str(out))
        assert result.exit_code == 0, result.output
        with out.open(encoding="utf-8") as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["ai_model"] == "Claude"
        assert rows[0]["total_predictions"] == "2"

    def test_dry_run_writes_nothing(self, initialised, tmp_path):
        config_path, db_path = initialised
        result = _invoke(
            config_path, "import-predictions", "--file", str(self._predictions(tmp_path)), "--dry-run",
        )
        assert result.exit_code == 0
        with get_connection(str(db_path), wal_mode=False) as conn:
            assert MarketRepository(conn).count_predictions() == 0

    def test_unknown_model_rejected(self, initialised, tmp_path):
        config_path, _ = initialised
        result = _invoke(
            config_path, "import-predictions", "--file", str(self._predictions(tmp_path, "Gemini")),
        )
        assert result.exit_code == 1


class TestReadCommands:
    def test_fear_greed_without_data(self, initialised):
        config_path, _ = initialised
        assert _invoke(config_path, "fear-greed").exit_code == 1

    def test_show_index_without_data(self, initialised):
        config_path, _ = initialised
        result = _invoke(config_path, "show-index")
        assert result.exit_code == 0
        assert "no composite index yet" in result.output

    def test_unknown_period(self, initialised):
        config_path, _ = initialised
        assert _invoke(config_path, "rank-models", "--period", "1y").exit_code == 1

    def test_unsupported_export_format(self, initialised, tmp_path):
        config_path, _ = initialised
        result = _invoke(config_path, "export-rankings", "--out", str(tmp_path / "r.txt"))
        assert result.exit_code == 1
