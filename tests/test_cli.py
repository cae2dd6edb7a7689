from unittest.mock import MagicMock

import pytest

import cli
from app.core.errors import ChainNotFound


@pytest.fixture
def logging_setup(monkeypatch):
    setup = MagicMock()
    monkeypatch.setattr(cli, "setup_logging", setup)
    return setup


@pytest.mark.asyncio
async def test_address_command(logging_setup, capsys):
    exit_code = await cli.main(["address", "anonymous:evm"])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "0x07ad6c859ac451e8fae11f261bb24c958378c56b"
    logging_setup.assert_called_once_with("WARNING", json_logs=False)


@pytest.mark.asyncio
async def test_log_level_flag_configures_logging(logging_setup):
    await cli.main(["--log-level", "DEBUG", "address", "anonymous"])

    logging_setup.assert_called_once_with("DEBUG", json_logs=False)


@pytest.mark.asyncio
async def test_wallet_errors_exit_nonzero(logging_setup, monkeypatch, capsys):
    async def fake_build_withdrawal(destination, amount, chain, token):
        raise ChainNotFound("Unknown chain: 'avalanche'")

    monkeypatch.setattr(cli, "build_withdrawal", fake_build_withdrawal)

    exit_code = await cli.main(["withdraw", "0x1234567890abcdef1234567890abcdef12345678", "1", "--chain", "avalanche"])

    assert exit_code == 1
    assert "chain_not_found" in capsys.readouterr().out
