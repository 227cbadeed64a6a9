import asyncio
import random

from easystyle.services.shopping import (
    BRANDS,
    DEFAULT_PRICE_RANGE,
    PRICE_RANGES,
    MockShoppingSearch,
    build_mock_product,
    clean_product_name,
    placeholder_image,
)


def _search(seed=7):
    return MockShoppingSearch(rng=random.Random(seed), min_delay=0, max_delay=0)


def test_blank_keyword_returns_none():
    search = _search()
    assert asyncio.run(search.search("")) is None
    assert asyncio.run(search.search("   ")) is None


def test_clean_product_name():
    assert clean_product_name('남성 "린넨" 셔츠') == "린넨 셔츠"
    assert clean_product_name("여자 플리츠 스커트") == "플리츠 스커트"


def test_prices_are_whole_thousands_in_range():
    rng = random.Random(1)
    for query in ("명품 가방", "스니커즈", "정장 셔츠", "린넨 팬츠"):
        for _ in range(20):
            product = build_mock_product(query, rng)
            low, high = next(
                (PRICE_RANGES[pool] for pool in PRICE_RANGES if product.brand in BRANDS[pool]),
                DEFAULT_PRICE_RANGE,
            )
            assert low <= product.price <= high
            assert product.price % 1000 == 0


def test_formal_keywords_pick_formal_brand_and_sizes():
    product = build_mock_product("남성 정장 셔츠", random.Random(3))

    assert product.brand in BRANDS["formal"]
    assert product.recommended_size in {"S", "M", "L", "XL"}
    assert product.store_name == f"{product.brand} 공식몰"
    assert product.product_url.startswith("https://search.shopping.naver.com/search/all?query=")
    assert product.category is None


def test_unknown_item_is_free_size():
    product = asyncio.run(_search().search("볼캡"))
    assert product.recommended_size == "Free"
    assert product.brand in BRANDS["casual"]


def test_placeholder_image_is_svg_data_uri():
    uri = placeholder_image("린넨 셔츠")
    assert uri.startswith("data:image/svg+xml;base64,")
