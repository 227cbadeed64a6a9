"""
Shared fixtures: scripted AI gateway, deterministic product search, a real
SQLite database per test.
"""

import base64
from io import BytesIO
from typing import Optional

import pytest
from PIL import Image

from easystyle.core import database
from easystyle.core.config import get_settings
from easystyle.core.flags import get_flags
from easystyle.schemas.styling import Product, SourceImage
from easystyle.services.gemini import AIGateway
from easystyle.services.session import clear_sessions
from easystyle.services.shopping import ProductSearch


def png_base64(size=(4, 4), color=(200, 120, 80)) -> str:
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, "PNG")
    return base64.b64encode(buffer.getvalue()).decode("ascii")


def make_product(name: str, price: int = 10_000, **overrides) -> Product:
    fields = dict(
        brand="BEAMS",
        name=name,
        price=price,
        image_url=f"https://img.example/{name}.png",
        recommended_size="M",
        product_url=f"https://shop.example/{name}",
        store_name="BEAMS 공식몰",
    )
    fields.update(overrides)
    return Product(**fields)


class FakeGateway(AIGateway):
    """Returns canned payloads and records what the pipeline asked for."""

    def __init__(
        self,
        question: Optional[dict] = None,
        plan: Optional[dict] = None,
        image: Optional[str] = "U1RZTEVE",
        crops: Optional[dict] = None,
        fail_plan: bool = False,
    ):
        self.question = question or {
            "question": "어떤 분위기를 원하세요?",
            "examples": ["편안하게", "세련되게", "귀엽게"],
        }
        self.plan = plan or {"description": "깔끔한 룩", "items": []}
        self.image = image
        self.crops = crops or {}
        self.fail_plan = fail_plan
        self.synthesis_calls = []
        self.crop_calls = []
        self.plan_prompts = []

    async def propose_follow_up_question(self, prompt):
        return self.question

    async def plan_style(self, image, prompt):
        self.plan_prompts.append(prompt)
        if self.fail_plan:
            raise ValueError("model returned no text")
        return self.plan

    async def synthesize_image(self, image, description, products, background):
        self.synthesis_calls.append((description, products, background))
        return self.image

    async def crop_product(self, styled_image_base64, category, product_name):
        self.crop_calls.append(product_name)
        crop = self.crops.get(product_name)
        if isinstance(crop, Exception):
            raise crop
        return crop


class FakeSearch(ProductSearch):
    """Keyword → product table. Unknown keywords return None."""

    def __init__(self, catalog: dict):
        self.catalog = catalog
        self.queries = []

    async def search(self, keyword):
        self.queries.append(keyword)
        return self.catalog.get(keyword)


@pytest.fixture()
def source_image() -> SourceImage:
    return SourceImage(base64=png_base64(), mime_type="image/png")


@pytest.fixture()
def database_url(tmp_path, monkeypatch):
    """Point the app at a fresh SQLite file and reset cached settings/engine."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'easystyle.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("ADMIN_EMAIL", "admin@easystyle.com")
    monkeypatch.setenv("FF_USE_REDIS", "false")
    get_settings.cache_clear()
    get_flags.cache_clear()
    database._engine = None
    database._session_factory = None
    yield url
    database._engine = None
    database._session_factory = None
    get_settings.cache_clear()
    get_flags.cache_clear()


@pytest.fixture(autouse=True)
def _fresh_sessions():
    clear_sessions()
    yield
    clear_sessions()
