import pytest

from fakes import BASE, INSTANCE_ID, make_instance
from mintkit import Client, create_client
from mintkit.accounts import LocalSigningAccount
from mintkit.errors import ApiError, InvalidInputError, UnsupportedNetworkError
from mintkit.products import EditionProduct
from mintkit.settings import ClientSettings

PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "reference",
    [INSTANCE_ID, str(INSTANCE_ID), f"https://manifold.xyz/@artist/id/{INSTANCE_ID}"],
)
async def test_get_product_by_id_or_url(context, catalog, reference):
    catalog.get_instance.return_value = make_instance()

    product = await Client(context).get_product(reference)

    assert isinstance(product, EditionProduct)
    assert product.network_id == BASE
    catalog.get_instance.assert_awaited_once_with(str(INSTANCE_ID))


@pytest.mark.asyncio
async def test_get_product_rejects_bad_reference_without_lookup(context, catalog):
    with pytest.raises(InvalidInputError):
        await Client(context).get_product("not-a-product")
    catalog.get_instance.assert_not_awaited()


@pytest.mark.asyncio
async def test_catalog_errors_propagate(context, catalog):
    catalog.get_instance.side_effect = ApiError("Instance with ID 1 not found")

    with pytest.raises(ApiError):
        await Client(context).get_product("1")


def test_local_account_requires_private_key():
    client = create_client(ClientSettings(use_default_rpcs=False))

    with pytest.raises(InvalidInputError, match="No private key"):
        client.local_account(BASE)


def test_local_account_requires_rpc_url():
    client = create_client(use_default_rpcs=False, private_key=PRIVATE_KEY)

    with pytest.raises(UnsupportedNetworkError):
        client.local_account(BASE)


def test_local_account_uses_primary_rpc():
    client = create_client(
        ClientSettings(private_key=PRIVATE_KEY, use_default_rpcs=False),
        rpc_urls={BASE: ["https://primary.example", "https://backup.example"]},
    )

    account = client.local_account(BASE)

    assert isinstance(account, LocalSigningAccount)
    assert account.address == "0x2c7536E3605D9C16a7a3D7b1898e529396a65c23"


@pytest.mark.asyncio
async def test_context_manager_clears_caches(context):
    context.rate_cache.put((BASE, "0x0"), None)

    async with Client(context) as client:
        assert client.settings is context.settings

    assert len(context.rate_cache) == 0
