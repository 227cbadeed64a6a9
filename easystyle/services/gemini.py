"""
AI gateway — powered by Google Gemini.

Async wrapper around the sync google-genai SDK. Four calls:
  - follow-up question (text → JSON)
  - style plan (photo + prompt → JSON description and search keywords)
  - style image synthesis (photo + products + backdrop → image)
  - product crop (styled image + product → image)

The gateway only talks to the model and decodes its output. Shape validation
and failure policy live in the pipeline.
"""

import asyncio
import base64
import json
import logging
from abc import ABC, abstractmethod
from typing import Optional

from ..core.config import get_settings
from ..schemas.styling import BackgroundContext, Product, ProductCategory, SourceImage

logger = logging.getLogger(__name__)


class AIGateway(ABC):
    @abstractmethod
    async def propose_follow_up_question(self, prompt: str) -> dict:
        """Returns raw {"question": str, "examples": [str, str, str]}."""
        ...

    @abstractmethod
    async def plan_style(self, image: SourceImage, prompt: str) -> dict:
        """Returns raw {"description": str, "items": [{"category", "searchKeyword"}]}."""
        ...

    @abstractmethod
    async def synthesize_image(
        self,
        image: SourceImage,
        description: str,
        products: list[Product],
        background: BackgroundContext,
    ) -> Optional[str]:
        """Returns the styled image as base64, or None if the model sent no image."""
        ...

    @abstractmethod
    async def crop_product(
        self,
        styled_image_base64: str,
        category: Optional[ProductCategory],
        product_name: str,
    ) -> Optional[str]:
        """Returns the cropped product image as base64, or None."""
        ...


_gemini_client = None


def _get_gemini_client():
    """Lazy-load and cache the google-genai client as a singleton."""
    global _gemini_client
    if _gemini_client is not None:
        return _gemini_client
    try:
        from google import genai
        settings = get_settings()
        api_key = settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY is required for styling")
        _gemini_client = genai.Client(api_key=api_key)
        return _gemini_client
    except ImportError:
        raise ImportError(
            "google-genai package is required for styling. "
            "Install it with: pip install google-genai"
        )


# ── Prompts ──────────────────────────────────────────────────────────

PLANNER_SYSTEM_INSTRUCTION = """You are an expert fashion stylist. Your goal is to analyze a user's photo and their request, then create a new, improved style for them. You must suggest specific, real-world clothing items.

Your tasks are:
1. **Analyze**: Look at the user's photo and understand their request.
2. **Describe the new style**: Write a short, appealing description of the new style you are proposing in Korean.
3. **List items**: Identify the key clothing items for this new style (e.g., top, bottom, shoes, accessory). For each item, provide a detailed search keyword that can be used to find a real product on a Korean online shopping mall like Musinsa. The keyword should be in Korean and very specific (e.g., '남자 오버핏 옥스포드 셔츠 화이트', '여성 와이드핏 슬랙스 블랙'). The category must be one of '상의', '하의', '신발', '악세서리'."""


def _build_follow_up_prompt(prompt: str) -> str:
    return f"""사용자의 스타일링 요청에 대해 더 구체적인 정보를 얻기 위한 질문을 하나 생성해줘. 사용자의 요청: "{prompt}".
질문은 사용자가 자신의 취향을 더 잘 표현할 수 있도록 도와야 해.
예시 답변도 3개 제공해줘.
결과는 반드시 아래 JSON 형식과 일치해야 해.
{{
  "question": "string",
  "examples": ["string", "string", "string"]
}}"""


def _build_synthesis_prompt(
    description: str,
    products: list[Product],
    background: BackgroundContext,
) -> str:
    """Build the image-generation prompt: person preserved, products worn, backdrop set."""
    product_lines = "\n".join(
        f"- {p.category.value if p.category else ''}: {p.brand} {p.name}" for p in products
    )
    return f"""Original photo of the person is provided.
New style description: "{description}"
Real products to use for the new style:
{product_lines}

Generate a new, photorealistic image of the person from the original photo. They should be wearing the new style composed of the exact products listed. The person's face and body should be preserved.

Background: {background.description}
Setting: {background.setting}
Lighting: {background.lighting}

Make sure the background complements the style and creates an appropriate atmosphere for the outfit. The image should look natural and professionally styled.
"""


_CROP_FOCUS = {
    ProductCategory.TOP: [
        "셔츠/블라우스/니트 등의 전체 형태가 보이도록",
        "어깨부터 허리 또는 엉덩이까지 포함",
        "소매와 칼라 디테일이 명확히 보이도록",
        "옷의 핏과 실루엣이 잘 드러나도록",
    ],
    ProductCategory.BOTTOM: [
        "바지/스커트/반바지의 전체 길이가 보이도록",
        "허리부터 발목 또는 무릎까지 포함",
        "핏과 실루엣이 명확히 드러나도록",
        "주름이나 라인이 자연스럽게 보이도록",
    ],
    ProductCategory.SHOES: [
        "신발 전체가 명확히 보이도록",
        "발과 발목 부분도 약간 포함",
        "신발의 형태와 스타일이 잘 드러나도록",
        "측면 또는 전면에서 가장 매력적인 각도로",
    ],
    ProductCategory.ACCESSORY: [
        "가방/모자/목걸이/귀걸이 등을 클로즈업",
        "악세서리가 착용된 상태로 자연스럽게",
        "디테일과 질감이 명확히 보이도록",
        "주변 컨텍스트도 약간 포함하여 사용감 표현",
    ],
}

_CROP_FOCUS_DEFAULT = [
    "제품의 전체적인 모습이 보이도록",
    "착용된 상태에서 자연스럽게",
    "제품의 특징이 잘 드러나도록",
]


def _build_crop_prompt(category: Optional[ProductCategory], product_name: str) -> str:
    label = category.value if category else "제품"
    focus = _CROP_FOCUS.get(category, _CROP_FOCUS_DEFAULT)
    heading = f"{label} ({product_name})에 집중해서:" if category else "해당 제품을 중심으로:"
    focus_lines = "\n".join(f"- {line}" for line in focus)

    return f"""이 전체 스타일링 이미지에서 "{product_name}" ({label})을 정확히 찾아서 상품 이미지로 크롭해줘.

작업 단계:
1. 이미지에서 해당 {label} 제품을 정확히 식별
2. 제품이 잘 보이는 각도와 범위로 크롭
3. 제품의 형태와 디테일이 명확히 드러나도록 프레임 조정

{heading}
{focus_lines}

중요 사항:
- 착용된 상태 그대로 자연스럽게 크롭 (제품만 분리하지 말고)
- 제품의 핏과 스타일링 효과가 잘 보이도록
- 배경은 자연스럽게 포함하되 제품에 집중
- 상품 쇼핑몰에서 볼 수 있는 품질의 이미지로 생성
- 제품이 불분명하거나 찾을 수 없다면 전체 스타일링의 해당 부분을 포함하여 크롭

결과: 전문적인 상품 이미지 (착용 상태)
"""


# ── Response schemas ─────────────────────────────────────────────────


def _follow_up_schema():
    from google.genai import types
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "question": types.Schema(type=types.Type.STRING),
            "examples": types.Schema(
                type=types.Type.ARRAY,
                items=types.Schema(type=types.Type.STRING),
            ),
        },
        required=["question", "examples"],
    )


def _plan_schema():
    from google.genai import types
    categories = [c.value for c in ProductCategory]
    return types.Schema(
        type=types.Type.OBJECT,
        properties={
            "description": types.Schema(
                type=types.Type.STRING,
                description="The new style description in Korean.",
            ),
            "items": types.Schema(
                type=types.Type.ARRAY,
                description="List of items for the new style.",
                items=types.Schema(
                    type=types.Type.OBJECT,
                    properties={
                        "category": types.Schema(
                            type=types.Type.STRING,
                            enum=categories,
                            description=f"Category of the item. Must be one of {categories}.",
                        ),
                        "searchKeyword": types.Schema(
                            type=types.Type.STRING,
                            description="A specific search keyword in Korean for an online shop.",
                        ),
                    },
                    required=["category", "searchKeyword"],
                ),
            ),
        },
        required=["description", "items"],
    )


# ── Sync functions (run in a thread for async compatibility) ─────────


def _image_part(image_base64: str, mime_type: str):
    from google.genai import types
    return types.Part.from_bytes(data=base64.b64decode(image_base64), mime_type=mime_type)


def _extract_image_base64(response) -> Optional[str]:
    """Return the first image part of a response as base64, or None."""
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None
    content = candidates[0].content
    if content is None or not content.parts:
        return None

    for part in content.parts:
        inline = part.inline_data
        if inline is None or not inline.data:
            continue
        if (inline.mime_type or "").startswith("image/"):
            return base64.b64encode(inline.data).decode("ascii")
    return None


def _sync_generate_json(model: str, contents, schema, system_instruction: Optional[str] = None) -> dict:
    from google.genai import types

    client = _get_gemini_client()
    response = client.models.generate_content(
        model=model,
        contents=contents,
        config=types.GenerateContentConfig(
            system_instruction=system_instruction,
            response_mime_type="application/json",
            response_schema=schema,
        ),
    )
    text = (response.text or "").strip()
    if not text:
        raise ValueError("Gemini returned an empty JSON response")
    return json.loads(text)


def _sync_generate_image(model: str, contents) -> Optional[str]:
    from google.genai import types

    client = _get_gemini_client()
    response = client.models.generate_content(
        model=model,
        contents=contents,
        config=types.GenerateContentConfig(
            response_modalities=["IMAGE", "TEXT"],
        ),
    )
    return _extract_image_base64(response)


# ── Async public API ─────────────────────────────────────────────────


class GeminiGateway(AIGateway):
    """Gemini-backed AI gateway. Models come from settings unless overridden."""

    def __init__(self, text_model: Optional[str] = None, image_model: Optional[str] = None):
        settings = get_settings()
        self.text_model = text_model or settings.text_model
        self.image_model = image_model or settings.image_model

    async def propose_follow_up_question(self, prompt: str) -> dict:
        return await asyncio.to_thread(
            _sync_generate_json,
            self.text_model, _build_follow_up_prompt(prompt), _follow_up_schema(),
        )

    async def plan_style(self, image: SourceImage, prompt: str) -> dict:
        contents = [
            _image_part(image.base64, image.mime_type),
            f'이 사진의 사람을 위해 "{prompt}" 요청에 맞춰 새로운 스타일을 제안해줘.',
        ]
        return await asyncio.to_thread(
            _sync_generate_json,
            self.text_model, contents, _plan_schema(), PLANNER_SYSTEM_INSTRUCTION,
        )

    async def synthesize_image(
        self,
        image: SourceImage,
        description: str,
        products: list[Product],
        background: BackgroundContext,
    ) -> Optional[str]:
        contents = [
            _image_part(image.base64, image.mime_type),
            _build_synthesis_prompt(description, products, background),
        ]
        return await asyncio.to_thread(_sync_generate_image, self.image_model, contents)

    async def crop_product(
        self,
        styled_image_base64: str,
        category: Optional[ProductCategory],
        product_name: str,
    ) -> Optional[str]:
        contents = [
            _image_part(styled_image_base64, "image/png"),
            _build_crop_prompt(category, product_name),
        ]
        return await asyncio.to_thread(_sync_generate_image, self.image_model, contents)
