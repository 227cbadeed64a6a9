"""
Styling pipeline — photo + prompt → StyleResult.

Stages:
  1. plan        one AI call: style description + {category, searchKeyword} items
  2. products    concurrent lookups, fan-in by position, misses dropped
  3. synthesize  one AI call: the person wearing the products on a matching backdrop
  4. crop        concurrent per-product thumbnails, best-effort

Stages 1-3 abort the run on the first error; nothing partial is returned.
Stage 4 failures stay with their product.

The public operations are cancellation-unaware: an abandoned run keeps going
until it finishes. Callers that keep shared state must check that the result
is still wanted before applying it (see StylingSession.apply_result).
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

from ..core.errors import (
    CropFailure,
    GenerationError,
    ImageSynthesisError,
    NoProductsFoundError,
)
from ..schemas.styling import (
    FollowUpQuestion,
    PlannedItem,
    Product,
    SourceImage,
    StylePlan,
    StyleResult,
)
from .background import resolve_context
from .gemini import AIGateway
from .shopping import ProductSearch

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], Awaitable[None]]


class StylingPipeline:
    """Orchestrates the AI gateway and product search for one styling run."""

    def __init__(
        self,
        ai: AIGateway,
        search: ProductSearch,
        enable_cropping: bool = True,
    ):
        self.ai = ai
        self.search = search
        self.enable_cropping = enable_cropping

    # ── Follow-up question ───────────────────────────────────────────

    async def propose_follow_up_question(self, prompt: str) -> FollowUpQuestion:
        """Ask the model for one clarifying question with three example answers."""
        try:
            raw = await self.ai.propose_follow_up_question(prompt)
            return FollowUpQuestion.model_validate(raw)
        except Exception as e:
            logger.error("Follow-up question failed: %s", e)
            raise GenerationError(
                "AI가 질문을 생성하는 데 실패했습니다. 잠시 후 다시 시도해주세요.",
                detail=str(e),
            ) from e

    # ── Style generation ─────────────────────────────────────────────

    async def execute_style_generation(
        self,
        image: SourceImage,
        final_prompt: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> StyleResult:
        """Run all four stages. Raises a StylingError subclass on fatal failure."""
        start = time.monotonic()

        await _report(on_progress, "planning")
        plan = await self._plan(image, final_prompt)

        await _report(on_progress, "searching")
        products = await self._resolve_products(plan.items)
        if not products:
            logger.warning("No products resolved for %d planned items", len(plan.items))
            raise NoProductsFoundError()

        await _report(on_progress, "synthesizing")
        image_base64 = await self._synthesize(image, final_prompt, plan.description, products)

        if self.enable_cropping:
            await _report(on_progress, "cropping")
            products = await self._crop_all(image_base64, products)

        logger.info(
            "Style generated in %dms: %d products, %d cropped",
            int((time.monotonic() - start) * 1000),
            len(products),
            sum(1 for p in products if p.cropped_image_base64),
        )
        return StyleResult(
            image_base64=image_base64,
            description=plan.description,
            products=products,
        )

    async def _plan(self, image: SourceImage, prompt: str) -> StylePlan:
        try:
            raw = await self.ai.plan_style(image, prompt)
            plan = StylePlan.model_validate(raw)
        except Exception as e:
            logger.error("Style planning failed: %s", e)
            raise GenerationError(
                "스타일 생성 중 오류가 발생했습니다: AI가 스타일 제안을 만들지 못했습니다.",
                detail=str(e),
            ) from e

        logger.info("Style plan: %d items", len(plan.items))
        return plan

    async def _resolve_products(self, items: list[PlannedItem]) -> list[Product]:
        """Look up every planned item concurrently. Order follows the plan."""
        found = await asyncio.gather(*(self._lookup(item) for item in items))
        return _unique_urls([p for p in found if p is not None])

    async def _lookup(self, item: PlannedItem) -> Optional[Product]:
        product = await self.search.search(item.search_keyword)
        if product is None:
            logger.info("No product for %r (%s)", item.search_keyword, item.category.value)
            return None
        return product.model_copy(update={"category": item.category})

    async def _synthesize(
        self,
        image: SourceImage,
        prompt: str,
        description: str,
        products: list[Product],
    ) -> str:
        background = resolve_context(prompt, description)
        try:
            image_base64 = await self.ai.synthesize_image(image, description, products, background)
        except Exception as e:
            logger.error("Image synthesis failed: %s", e)
            raise ImageSynthesisError(detail=str(e)) from e

        if not image_base64:
            logger.error("Image synthesis returned no image")
            raise ImageSynthesisError()
        return image_base64

    async def _crop_all(self, image_base64: str, products: list[Product]) -> list[Product]:
        crops = await asyncio.gather(
            *(self._crop_or_none(image_base64, p) for p in products)
        )
        return [
            p.model_copy(update={"cropped_image_base64": crop}) if crop else p
            for p, crop in zip(products, crops)
        ]

    async def _crop_or_none(self, image_base64: str, product: Product) -> Optional[str]:
        try:
            return await self._crop(image_base64, product)
        except CropFailure as e:
            logger.warning("Could not crop image for product: %s", e)
            return None

    async def _crop(self, image_base64: str, product: Product) -> str:
        try:
            cropped = await self.ai.crop_product(image_base64, product.category, product.name)
        except Exception as e:
            raise CropFailure(product.name, str(e)) from e
        if not cropped:
            raise CropFailure(product.name)
        return cropped


async def _report(on_progress: Optional[ProgressCallback], stage: str) -> None:
    if on_progress is not None:
        await on_progress(stage)


def _unique_urls(products: list[Product]) -> list[Product]:
    """
    Selection is keyed by product_url, so two lookups that landed on the same
    URL (e.g. a repeated keyword) get an item suffix to stay distinct.
    """
    seen: set[str] = set()
    unique = []
    for index, product in enumerate(products):
        url = product.product_url
        suffix = index
        while url in seen:
            sep = "&" if "?" in product.product_url else "?"
            url = f"{product.product_url}{sep}nv_item={suffix}"
            suffix += 1
        if url != product.product_url:
            product = product.model_copy(update={"product_url": url})
        seen.add(url)
        unique.append(product)
    return unique
