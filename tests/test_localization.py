# tests/test_localization.py

import asyncio
from decimal import Decimal

import pytest

from conftest import FakeCatalog, FakeTranslator, make_entry
from storefront.core import locales
from storefront.core.exceptions import CatalogUnavailableError, UnsupportedLanguageError
from storefront.schemas.product import LocalizedEntry, to_minor_units
from storefront.services.localization import LocalizationPipeline
from storefront.services.translation_cache import CachedTranslator, TranslationCache


def make_pipeline(catalog, translator, **kwargs) -> LocalizationPipeline:
    return LocalizationPipeline(catalog=catalog, translator=translator, **kwargs)


@pytest.mark.asyncio
async def test_canonical_language_passes_text_through(fake_catalog, fake_translator):
    pipeline = make_pipeline(fake_catalog, fake_translator)

    result = await pipeline.run("es")

    assert fake_translator.calls == []
    assert result.translated is False
    assert result.warning is None
    assert [item.title for item in result.items] == ["Producto 1", "Producto 2", "Producto 42"]
    # Пустое описание заменяется заглушкой на каноническом языке
    assert result.items[1].description == locales.DEFAULT_DESCRIPTION
    assert result.items[0].image == "https://catalog.test/assets/img-1"
    assert all(item.language == "es" for item in result.items)


@pytest.mark.asyncio
async def test_other_language_translates_title_and_description(fake_catalog, fake_translator):
    pipeline = make_pipeline(fake_catalog, fake_translator)

    result = await pipeline.run("en")

    assert result.translated is True
    assert result.language == "en"
    assert result.items[0].title == "[en] Producto 1"
    assert result.items[0].description == "[en] Descripción del producto 1"
    assert result.items[1].description == f"[en] {locales.DEFAULT_DESCRIPTION}"
    assert len(fake_translator.calls) == 6
    assert all(call[1:] == ("es", "en") for call in fake_translator.calls)
    # Цена, остаток и категория не меняются
    assert result.items[2].stock == 5
    assert result.items[2].price_minor == 2500


@pytest.mark.asyncio
async def test_one_failed_translation_falls_back_for_whole_batch(fake_catalog):
    translator = FakeTranslator(fail_on={"Descripción del producto 42"})
    pipeline = make_pipeline(fake_catalog, translator)

    result = await pipeline.run("en")

    assert result.translated is False
    assert result.language == "es"
    assert result.requested_language == "en"
    assert result.warning == locales.WARNING_TRANSLATION_FAILED
    assert [item.title for item in result.items] == ["Producto 1", "Producto 2", "Producto 42"]
    assert all(not item.title.startswith("[en]") for item in result.items)
    assert all(item.language == "es" for item in result.items)


@pytest.mark.asyncio
async def test_translations_are_issued_concurrently(fake_catalog):
    in_flight = 0
    peak = 0

    class SlowTranslator:
        async def translate(self, text, source, target):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0.01)
            in_flight -= 1
            return text.upper()

    pipeline = make_pipeline(fake_catalog, SlowTranslator())

    await pipeline.run("en")

    assert peak == 6


@pytest.mark.asyncio
async def test_successful_translations_are_cached_between_runs(fake_catalog, storage):
    client = FakeTranslator()
    translator = CachedTranslator(client, TranslationCache(storage, "translation-cache"))
    pipeline = make_pipeline(fake_catalog, translator)

    await pipeline.run("en")
    await pipeline.run("es")
    second = await pipeline.run("en")

    assert second.translated is True
    assert len(client.calls) == 6
    assert fake_catalog.fetch_products.await_count == 3


@pytest.mark.asyncio
async def test_unsupported_language_is_rejected(fake_catalog, fake_translator):
    pipeline = make_pipeline(fake_catalog, fake_translator)

    with pytest.raises(UnsupportedLanguageError):
        await pipeline.run("fr")
    fake_catalog.fetch_products.assert_not_awaited()


@pytest.mark.asyncio
async def test_catalog_failure_is_propagated_as_retryable(fake_catalog, fake_translator):
    fake_catalog.fail_products = True
    pipeline = make_pipeline(fake_catalog, fake_translator)

    with pytest.raises(CatalogUnavailableError) as exc_info:
        await pipeline.run("en")
    assert exc_info.value.retryable


@pytest.mark.asyncio
async def test_unexpected_translator_error_is_not_swallowed(fake_catalog):
    class BrokenTranslator:
        async def translate(self, text, source, target):
            raise KeyError("bug")

    pipeline = make_pipeline(fake_catalog, BrokenTranslator())

    with pytest.raises(KeyError):
        await pipeline.run("en")


@pytest.mark.asyncio
async def test_featured_products_are_used_when_available(fake_translator):
    catalog = FakeCatalog(products=[make_entry(i) for i in range(1, 10)], featured=[make_entry(7)])
    pipeline = make_pipeline(catalog, fake_translator)

    result = await pipeline.run("es", featured=True)

    assert [item.id for item in result.items] == [7]
    catalog.fetch_products.assert_not_awaited()


@pytest.mark.asyncio
async def test_featured_falls_back_to_first_products(fake_translator):
    catalog = FakeCatalog(products=[make_entry(i) for i in range(1, 10)])
    catalog.fail_featured = True
    pipeline = make_pipeline(catalog, fake_translator, featured_limit=6)

    result = await pipeline.run("es", featured=True)

    assert [item.id for item in result.items] == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_last_requested_language_wins(fake_catalog):
    release = asyncio.Event()

    class GatedTranslator:
        async def translate(self, text, source, target):
            await release.wait()
            return f"[{target}] {text}"

    pipeline = make_pipeline(fake_catalog, GatedTranslator())
    delivered = []
    pipeline.subscribe(delivered.append)

    slow_run = asyncio.create_task(pipeline.run("en"))
    await asyncio.sleep(0)
    latest = await pipeline.run("es")
    release.set()
    stale = await slow_run

    assert latest.superseded is False
    assert stale.superseded is True
    assert [result.language for result in delivered] == ["es"]


@pytest.mark.asyncio
async def test_rerun_starts_from_fresh_catalog(fake_translator):
    catalog = FakeCatalog(products=[make_entry(1, stock=5)])
    pipeline = make_pipeline(catalog, fake_translator)

    first = await pipeline.run("es")
    catalog.products = [make_entry(1, stock=2), make_entry(3)]
    second = await pipeline.run("es")

    assert [item.stock for item in first.items] == [5]
    assert [(item.id, item.stock) for item in second.items] == [(1, 2), (3, 5)]


def test_localized_entry_converts_to_cart_item():
    entry = LocalizedEntry(
        id=42, title="Chocolate cake", description="Rich", price=Decimal("3.50"),
        image="https://cdn.test/42.webp", category=3, stock=5, language="en",
    )

    item = entry.to_cart_item()

    assert item.id == 42
    assert item.title == "Chocolate cake"
    assert item.price == 350
    assert item.category == 3


@pytest.mark.parametrize("price, expected", [
    (Decimal("3.50"), 350),
    (Decimal("25"), 2500),
    (Decimal("0.10"), 10),
    (Decimal("24.995"), 2500),
    (Decimal("24.994"), 2499),
])
def test_catalog_price_becomes_minor_units(price, expected):
    assert to_minor_units(price) == expected


def test_minor_units_exponent_can_be_overridden():
    assert to_minor_units(Decimal("1500"), exponent=0) == 1500
    assert to_minor_units(Decimal("1.2345"), exponent=3) == 1235
