from __future__ import annotations

import os
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from fakes import BASE, FakeAccount, FakePriceOracle, FakeProvider
from mintkit.api.catalog import CatalogClient
from mintkit.context import ClientContext
from mintkit.providers.reader import ChainReader
from mintkit.settings import ClientSettings


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep developer env vars and config files out of the tests."""
    for key in list(os.environ):
        if key.startswith("MINTKIT_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def settings():
    return ClientSettings(use_default_rpcs=False)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def reader(provider):
    return ChainReader({BASE: [provider]})


@pytest.fixture
def oracle(settings):
    return FakePriceOracle(
        settings, {"ETH": Decimal("3000"), "USDC": Decimal("1")}
    )


@pytest.fixture
def catalog():
    return AsyncMock(spec=CatalogClient)


@pytest.fixture
def context(settings, reader, oracle, catalog):
    return ClientContext.from_settings(
        settings, reader=reader, price_oracle=oracle, catalog=catalog
    )


@pytest.fixture
def account():
    return FakeAccount()
