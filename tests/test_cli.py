from pathlib import Path

from typer.testing import CliRunner

from trade_journal.cli import _write_trades_csv, app
from trade_journal.types import Trade

runner = CliRunner()


def _env(tmp_path: Path) -> dict[str, str]:
    return {
        "STORE_BACKEND": "sql",
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / 'journal.db'}",
        "LOG_LEVEL": "WARNING",
    }


def _add(tmp_path: Path, *args: str) -> str:
    result = runner.invoke(app, ["add", *args], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    return result.output.split()[0]


def test_add_list_and_stats(tmp_path: Path) -> None:
    _add(
        tmp_path,
        "--pair", "BTC/USDT", "--strategy", "Breakout",
        "--entry", "61250", "--exit", "63100", "--size", "0.5", "--date", "2025-01-05",
    )
    _add(
        tmp_path,
        "--pair", "ETH/USDT", "--direction", "Short", "--strategy", "Fade",
        "--entry", "3120", "--exit", "3040", "--size", "20", "--date", "2025-01-10",
    )

    result = runner.invoke(app, ["trades", "--sort", "pnl-asc"], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    lines = [line for line in result.output.splitlines() if "USDT" in line]
    assert "BTC/USDT" in lines[0]
    assert "+$925.00" in lines[0]
    assert "+$1,600.00" in lines[1]

    result = runner.invoke(app, ["stats", "--direction", "Short"], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    assert "Net PnL: +$1,600.00" in result.output
    assert "Win Rate: 100%" in result.output


def test_add_rejects_invalid_size(tmp_path: Path) -> None:
    result = runner.invoke(
        app,
        ["add", "--pair", "BTC/USDT", "--strategy", "x", "--entry", "1", "--exit", "2", "--size", "0"],
        env=_env(tmp_path),
    )
    assert result.exit_code == 1
    assert "position size greater than zero" in result.output


def test_edit_recomputes_pnl(tmp_path: Path) -> None:
    trade_id = _add(
        tmp_path,
        "--pair", "BTC/USDT", "--strategy", "Breakout",
        "--entry", "100", "--exit", "110", "--size", "1", "--date", "2025-01-05",
    )
    result = runner.invoke(app, ["edit", trade_id, "--exit", "90"], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    assert "-$10.00" in result.output

    result = runner.invoke(app, ["edit", "missing", "--exit", "90"], env=_env(tmp_path))
    assert result.exit_code == 1


def test_delete_asks_for_confirmation(tmp_path: Path) -> None:
    trade_id = _add(
        tmp_path,
        "--pair", "SOL/USDT", "--strategy", "Scalp",
        "--entry", "100", "--exit", "110", "--size", "1", "--date", "2025-01-05",
    )
    result = runner.invoke(app, ["delete", trade_id], input="n\n", env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    assert "Delete trade SOL/USDT on Jan 5, 2025?" in result.output
    assert "Cancelled." in result.output

    result = runner.invoke(app, ["delete", trade_id, "--yes"], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    assert f"Deleted {trade_id}" in result.output

    result = runner.invoke(app, ["delete", trade_id, "--yes"], env=_env(tmp_path))
    assert result.exit_code == 1
    assert "No trade found" in result.output


def test_declining_delete_of_unknown_id_reports_cancelled(tmp_path: Path) -> None:
    result = runner.invoke(app, ["delete", "nope"], input="n\n", env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    assert "Delete this trade?" in result.output
    assert "Cancelled." in result.output
    assert "Deleted" not in result.output


def test_preview_command() -> None:
    result = runner.invoke(app, ["preview", "--entry", "61250", "--exit", "63100", "--size", "0.5"])
    assert result.exit_code == 0
    assert "PnL: +$925.00" in result.output

    result = runner.invoke(app, ["preview", "--entry", "61250", "--exit", "63100", "--size", "0"])
    assert "PnL: --" in result.output


def test_export_writes_filtered_csv(tmp_path: Path) -> None:
    _add(
        tmp_path,
        "--pair", "BTC/USDT", "--strategy", "Breakout",
        "--entry", "100", "--exit", "110", "--size", "1", "--date", "2025-01-05",
    )
    _add(
        tmp_path,
        "--pair", "ETH/USDT", "--strategy", "Fade",
        "--entry", "100", "--exit", "110", "--size", "1", "--date", "2025-01-06",
    )
    out = tmp_path / "out" / "trades.csv"
    result = runner.invoke(app, ["export", "--path", str(out), "--pair", "eth"], env=_env(tmp_path))
    assert result.exit_code == 0, result.output
    lines = out.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("id,trade_date,pair,direction")
    assert len(lines) == 2
    assert "ETH/USDT" in lines[1]


def test_write_trades_csv(tmp_path: Path) -> None:
    path = tmp_path / "out" / "trades.csv"
    trades = [
        Trade(
            id="abc",
            pair="BTC/USDT",
            direction="Long",
            strategy="Breakout",
            entry_price=61250.0,
            exit_price=63100.0,
            position_size=0.5,
            profit_loss=925.0,
            date="2025-01-05",
            sentiment="patient, for once",
        )
    ]

    _write_trades_csv(path=path, trades=trades)

    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "id,trade_date,pair,direction,strategy,entry_price,exit_price,position_size,pnl,sentiment"
    assert lines[1] == 'abc,2025-01-05,BTC/USDT,Long,Breakout,61250.0,63100.0,0.5,925.0,"patient, for once"'
