from fakes import CREATOR_CONTRACT, make_instance
from mintkit.constants import AppId
from mintkit.products import BlindMintProduct, EditionProduct, Media

PREVIEW = {"title": "Preview Title", "description": "From preview", "thumbnail": "https://cdn/t.png"}


def test_provenance_comes_from_catalog(context):
    edition = EditionProduct(context, make_instance())

    provenance = edition.get_provenance()

    assert provenance.creator.slug == "artist"
    assert provenance.contract.contract_address == CREATOR_CONTRACT
    assert provenance.contract.is_erc721 is False
    assert provenance.network_id == 8453


def test_metadata_prefers_public_data(context):
    edition = EditionProduct(
        context, make_instance(description="Public description", preview=PREVIEW)
    )

    metadata = edition.get_metadata()

    assert metadata.name == "Test Drop"
    assert metadata.description == "Public description"


def test_metadata_falls_back_to_preview(context):
    edition = EditionProduct(context, make_instance(title="", preview=PREVIEW))

    metadata = edition.get_metadata()

    assert metadata.name == "Preview Title"
    assert metadata.description == "From preview"


def test_preview_media_from_asset(context):
    asset = {
        "image": "ipfs://full",
        "animation": "ipfs://anim",
        "animation_preview": "ipfs://anim-small",
    }
    edition = EditionProduct(context, make_instance(asset=asset, preview=PREVIEW))

    assert edition.get_preview_media() == Media(
        image="ipfs://full",
        image_preview="https://cdn/t.png",
        animation="ipfs://anim",
        animation_preview="ipfs://anim-small",
    )


def test_blind_mint_media_uses_thumbnail(context):
    product = BlindMintProduct(
        context, make_instance(app_id=AppId.BLIND_MINT_1155, preview=PREVIEW)
    )

    assert product.get_preview_media() == Media(
        image="https://cdn/t.png", image_preview="https://cdn/t.png"
    )


def test_no_media_without_asset_or_thumbnail(context):
    assert EditionProduct(context, make_instance()).get_preview_media() is None
