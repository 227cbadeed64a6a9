"""
Image source fallback for one product card.

Order: cropped thumbnail (or catalog image when there is no crop), then the
other of the two, then the full styled image. Each source is tried at most
once. When the product's image fields change, the card starts over.
"""

from enum import Enum
from typing import Optional

from ..schemas.styling import Product


class ImageState(str, Enum):
    PRIMARY = "primary"
    FALLBACK1 = "fallback1"
    EXHAUSTED = "exhausted"


def data_url(image_base64: str, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{image_base64}"


class ProductImageResolver:
    """Tracks which image a card shows and what to try after a load failure."""

    def __init__(self, product: Product, style_image_url: str):
        self.style_image_url = style_image_url
        self._fields: tuple[str, Optional[str]] = ("", None)
        self.state = ImageState.PRIMARY
        self.src = ""
        self.update(product)

    def update(self, product: Product) -> None:
        """Point at a (possibly changed) product. Resets only if its image fields changed."""
        fields = (product.image_url, product.cropped_image_base64)
        if fields == self._fields:
            return
        self._fields = fields
        self.state = ImageState.PRIMARY
        self.src = self._primary()

    def _cropped(self) -> Optional[str]:
        cropped = self._fields[1]
        return data_url(cropped) if cropped else None

    def _primary(self) -> str:
        return self._cropped() or self._fields[0]

    def _secondary(self) -> Optional[str]:
        # The crop was primary → fall back to the catalog image, and vice versa.
        if self._cropped():
            return self._fields[0] or None
        return None

    def on_error(self) -> Optional[str]:
        """The current source failed to load. Returns the next one, or None when exhausted."""
        if self.state is ImageState.EXHAUSTED:
            return None

        if self.state is ImageState.PRIMARY:
            secondary = self._secondary()
            if secondary and secondary != self.src:
                self.state = ImageState.FALLBACK1
                self.src = secondary
                return self.src

        self.state = ImageState.EXHAUSTED
        self.src = self.style_image_url
        return self.src

    def chain(self) -> list[str]:
        """All sources in the order a card would try them, duplicates removed."""
        sources = [self._primary(), self._secondary(), self.style_image_url]
        seen: list[str] = []
        for src in sources:
            if src and src not in seen:
                seen.append(src)
        return seen
