import json
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from fakes import BUYER, EXTENSION, INSTANCE_ID, OTHER_WALLET, edition_claim, make_instance
from mintkit.client import Client
from mintkit.errors import ApiError
from mintkit.main import _parse_rpc_urls, app

runner = CliRunner()


@pytest.fixture
def cli_client(context, catalog, provider):
    provider.balances[BUYER.lower()] = 10**18
    provider.on(EXTENSION, "getClaim", edition_claim(cost=10**15, totalMax=100, total=10))
    provider.on(EXTENSION, "MINT_FEE", 5 * 10**14)
    provider.on(EXTENSION, "MINT_FEE_MERKLE", 5 * 10**14)
    catalog.get_instance.return_value = make_instance()
    client = Client(context)
    with patch("mintkit.main.create_client", return_value=client):
        yield client


def test_parse_rpc_urls_keeps_order():
    assert _parse_rpc_urls(["8453=https://a", "1=https://b", "8453=https://c"]) == {
        8453: ["https://a", "https://c"],
        1: ["https://b"],
    }


def test_show_config_redacts_secrets(monkeypatch):
    monkeypatch.setenv("MINTKIT_PRIVATE_KEY", "0x" + "ab" * 32)

    result = runner.invoke(
        app, ["--show-config", "--rpc-url", "8453=https://rpc.example", "--confirmations", "2"]
    )

    assert result.exit_code == 0
    config = json.loads(result.stdout)
    assert config["private_key"] == "***redacted***"
    assert config["rpc_urls"] == {"8453": ["https://rpc.example"]}
    assert config["confirmations"] == 2
    assert "ab" * 32 not in result.stdout


def test_bad_rpc_url_is_a_usage_error():
    result = runner.invoke(app, ["--rpc-url", "base-mainnet", "--show-config"])
    assert result.exit_code == 2


def test_no_command_prints_help():
    result = runner.invoke(app, [])
    assert result.exit_code == 0
    assert "purchase" in result.stdout


def test_status(cli_client):
    result = runner.invoke(app, ["--log-level", "ERROR", "status", str(INSTANCE_ID)])

    assert result.exit_code == 0, result.output
    assert "Test Drop" in result.stdout
    assert "artist" in result.stdout
    assert "active" in result.stdout


def test_allocation(cli_client):
    result = runner.invoke(
        app, ["--log-level", "ERROR", "allocation", str(INSTANCE_ID), OTHER_WALLET]
    )

    assert result.exit_code == 0, result.output
    assert "90" in result.stdout


def test_quote_json(cli_client):
    result = runner.invoke(
        app,
        ["--log-level", "ERROR", "quote", str(INSTANCE_ID), BUYER, "-q", "2", "--json"],
    )

    assert result.exit_code == 0, result.output
    quote = json.loads(result.stdout)
    assert quote["quantity"] == 2
    assert quote["cost"]["total_native"]["value"] == str(2 * (10**15 + 5 * 10**14))
    assert [s["id"] for s in quote["steps"]] == ["mint"]


def test_library_errors_exit_with_code_1(cli_client, catalog):
    catalog.get_instance.side_effect = ApiError("Instance with ID 1 not found")

    result = runner.invoke(app, ["--log-level", "ERROR", "status", "1"])

    assert result.exit_code == 1
    assert "API_ERROR" in result.output


def test_purchase_requires_private_key(cli_client):
    result = runner.invoke(
        app, ["--log-level", "ERROR", "purchase", str(INSTANCE_ID), "--yes"]
    )

    assert result.exit_code == 1
    assert "INVALID_INPUT" in result.output
