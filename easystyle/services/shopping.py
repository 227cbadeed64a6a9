"""
Product lookup. One abstract search interface and a mock Naver Shopping backend.

The mock invents a plausible product from the keyword (brand pool, price
range, size) and waits a little to look like a network call. Real inventory
is not guaranteed; product URLs point at the Naver search page for the query.
"""

import asyncio
import base64
import logging
import random
import re
from abc import ABC, abstractmethod
from html import escape
from typing import Optional
from urllib.parse import quote

from ..core.config import get_settings
from ..schemas.styling import Product

logger = logging.getLogger(__name__)


class ProductSearch(ABC):
    @abstractmethod
    async def search(self, keyword: str) -> Optional[Product]:
        """Find one product for the keyword. Returns None when nothing matches."""
        ...


# ── Mock catalog data ────────────────────────────────────────────────

BRANDS = {
    "formal": ["ZARA", "유니클로", "H&M", "COS", "엠포리오 아르마니", "휴고보스"],
    "casual": ["BEAMS", "어반리서치", "나노유니버스", "스피크이지", "마크 곤잘레스", "KENZO"],
    "street": ["나이키", "아디다스", "뉴발란스", "컨버스", "반스", "푸마"],
    "luxury": ["구찌", "프라다", "생로랑", "발렌시아가", "셀린느", "A.P.C."],
    "korean": ["스튜디오톰보이", "젠틀몬스터", "아더에러", "앤더슨벨", "마르디 메크르디", "우영미"],
}

# (keywords, brand pool), checked in order; casual is the fallback pool
_POOL_RULES = (
    (("정장", "셔츠", "블레이저"), "formal"),
    (("스니커즈", "운동화", "트레이닝"), "street"),
    (("명품", "럭셔리", "프리미엄"), "luxury"),
    (("국내", "한국"), "korean"),
)

PRICE_RANGES = {
    "luxury": (200_000, 800_000),
    "street": (80_000, 250_000),
    "formal": (50_000, 300_000),
}
DEFAULT_PRICE_RANGE = (30_000, 150_000)

_SIZE_RULES = (
    (("셔츠", "티셔츠", "니트", "블라우스", "가디건"), ["S", "M", "L", "XL"]),
    (("바지", "팬츠", "진", "슬랙스"), ["28", "30", "32", "34", "36"]),
    (("신발", "스니커즈", "부츠", "로퍼"), ["240", "245", "250", "255", "260", "265", "270", "275", "280"]),
)

_GENDER_WORDS = re.compile(r"남성|여성|남자|여자")

NAVER_SEARCH_URL = "https://search.shopping.naver.com/search/all?query="


def _pick_pool(query: str) -> str:
    for keywords, pool in _POOL_RULES:
        if any(k in query for k in keywords):
            return pool
    return "casual"


def _price_range_for(brand: str) -> tuple[int, int]:
    for pool in ("luxury", "street", "formal"):
        if brand in BRANDS[pool]:
            return PRICE_RANGES[pool]
    return DEFAULT_PRICE_RANGE


def _pick_size(query: str, rng: random.Random) -> str:
    for keywords, sizes in _SIZE_RULES:
        if any(k in query for k in keywords):
            return rng.choice(sizes)
    return "Free"


def clean_product_name(query: str) -> str:
    """Strip quotes and gender words from a search keyword."""
    return _GENDER_WORDS.sub("", query.replace('"', "")).strip()


def placeholder_image(text: str, width: int = 400, height: int = 500) -> str:
    """Return an SVG data URI with the text centered on a slate background."""
    svg = (
        f'<svg width="{width}" height="{height}" xmlns="http://www.w3.org/2000/svg">'
        f'<rect width="100%" height="100%" fill="#64748b"/>'
        f'<text x="50%" y="50%" font-family="system-ui, sans-serif" font-size="16" '
        f'font-weight="bold" fill="#f8fafc" text-anchor="middle" dominant-baseline="central">'
        f"{escape(text)}</text></svg>"
    )
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"


def build_mock_product(query: str, rng: random.Random) -> Product:
    """Invent a product for the query. Category is attached later by the pipeline."""
    lowered = query.lower()
    brand = rng.choice(BRANDS[_pick_pool(lowered)])

    low, high = _price_range_for(brand)
    # Whole thousands of won, inside [low, high]
    price = low + rng.randint(0, (high - low) // 1000) * 1000

    return Product(
        brand=brand,
        name=clean_product_name(query),
        price=price,
        image_url=placeholder_image(query),
        recommended_size=_pick_size(lowered, rng),
        product_url=f"{NAVER_SEARCH_URL}{quote(query)}",
        store_name=f"{brand} 공식몰",
    )


class MockShoppingSearch(ProductSearch):
    """Randomized stand-in for Naver Shopping search."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        min_delay: Optional[float] = None,
        max_delay: Optional[float] = None,
    ):
        settings = get_settings()
        self._rng = rng or random.Random()
        self.min_delay = settings.mock_search_min_delay if min_delay is None else min_delay
        self.max_delay = settings.mock_search_max_delay if max_delay is None else max_delay

    async def search(self, keyword: str) -> Optional[Product]:
        logger.info("Mock shopping search: %r", keyword)

        # Simulated network latency
        delay = self._rng.uniform(self.min_delay, max(self.min_delay, self.max_delay))
        if delay > 0:
            await asyncio.sleep(delay)

        if not keyword or not keyword.strip():
            return None

        return build_mock_product(keyword, self._rng)
