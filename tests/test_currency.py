import pytest

from fakes import BASE, TOKEN
from mintkit.constants import ZERO_ADDRESS
from mintkit.currency import CurrencyResolver


@pytest.fixture
def resolver(reader, provider):
    provider.on(TOKEN, "symbol", "USDC")
    provider.on(TOKEN, "decimals", 6)
    return CurrencyResolver(reader)


@pytest.mark.asyncio
async def test_native_currency_needs_no_reads(resolver, provider):
    info = await resolver.resolve(137, ZERO_ADDRESS)

    assert info.is_native
    assert info.symbol == "POL"
    assert info.decimals == 18
    assert provider.reads == []


@pytest.mark.asyncio
async def test_missing_address_means_native(resolver):
    assert (await resolver.resolve(BASE, None)).is_native


@pytest.mark.asyncio
async def test_token_metadata_is_read_once(resolver, provider):
    first = await resolver.money(BASE, TOKEN, 2_500_000)
    second = await resolver.money(BASE, TOKEN.lower(), 1)

    assert first.symbol == "USDC"
    assert first.formatted == "2.5"
    assert second.decimals == 6
    assert len(provider.reads) == 2


@pytest.mark.asyncio
async def test_clear_forgets_metadata(resolver, provider):
    await resolver.resolve(BASE, TOKEN)
    resolver.clear()
    await resolver.resolve(BASE, TOKEN)

    assert len(provider.reads) == 4
