"""
Styling pipeline errors.

Every fatal error carries one user-facing message (Korean, like the rest of
the UI copy). CropFailure is the only non-fatal one and never leaves the
pipeline.
"""


class StylingError(Exception):
    """Base class for pipeline failures surfaced to the caller."""

    status_code: int = 502
    default_message: str = "스타일 생성 중 오류가 발생했습니다."

    def __init__(self, message: str = "", detail: str = ""):
        self.message = message or self.default_message
        self.detail = detail
        super().__init__(self.message)


class GenerationError(StylingError):
    """The AI response at the planning or follow-up stage was missing or malformed."""

    default_message = "AI가 응답을 생성하는 데 실패했습니다. 잠시 후 다시 시도해주세요."


class NoProductsFoundError(StylingError):
    """Planning succeeded but none of the planned items matched a product."""

    status_code = 422
    default_message = "추천할만한 상품을 찾지 못했습니다. 다른 스타일로 시도해보세요."


class ImageSynthesisError(StylingError):
    """Products were resolved but the image call returned no image."""

    default_message = "AI가 새로운 스타일 이미지를 생성하는 데 실패했습니다."


class CropFailure(Exception):
    """A single product thumbnail could not be cropped. Never fatal."""

    def __init__(self, product_name: str, reason: str = "no image returned"):
        self.product_name = product_name
        self.reason = reason
        super().__init__(f"{product_name}: {reason}")
