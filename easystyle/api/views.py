"""
Response models shared by the styling, history and admin routers.
"""

from typing import Optional

from ..schemas.styling import CamelModel, FollowUpQuestion, Product
from ..services.image_fallback import ProductImageResolver, data_url
from ..services.session import StylingSession


class ProductView(CamelModel):
    product: Product
    selected: bool
    image_sources: list[str]  # try in order; the last one is the full style image


class StyleResultView(CamelModel):
    session_id: str
    prompt: str
    image_base64: Optional[str] = None
    description: str = ""
    question: Optional[FollowUpQuestion] = None
    groups: dict[str, list[ProductView]] = {}
    selected_count: int = 0
    total_price: int = 0
    saved: bool = False
    history_id: Optional[str] = None


def result_view(session: StylingSession) -> StyleResultView:
    """Render a session for the client: grouped products, selection and image fallbacks."""
    view = StyleResultView(
        session_id=session.session_id,
        prompt=session.prompt,
        question=session.question,
        saved=session.saved,
        history_id=session.history_id,
    )
    if session.result is None:
        return view

    style_url = data_url(session.result.image_base64)
    view.image_base64 = session.result.image_base64
    view.description = session.result.description
    view.groups = {
        category: [
            ProductView(
                product=p,
                selected=p.product_url in session.selection,
                image_sources=ProductImageResolver(p, style_url).chain(),
            )
            for p in products
        ]
        for category, products in session.grouped_products.items()
    }
    view.selected_count = len(session.selection)
    view.total_price = session.total_price
    return view
