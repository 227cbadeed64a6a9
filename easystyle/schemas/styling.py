"""
Styling domain types. Shared by the pipeline, the session model, the
record store and the API.

Field names serialize in camelCase so clients see the same shape the
browser app used (imageUrl, productUrl, croppedImageBase64, ...).
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProductCategory(str, Enum):
    TOP = "상의"
    BOTTOM = "하의"
    SHOES = "신발"
    ACCESSORY = "악세서리"


# Bucket for products whose category is missing. Never produced by the
# planner, but grouping has to place them somewhere.
OTHER_CATEGORY = "기타"

CATEGORY_DISPLAY_ORDER: tuple[str, ...] = (
    ProductCategory.TOP.value,
    ProductCategory.BOTTOM.value,
    ProductCategory.SHOES.value,
    ProductCategory.ACCESSORY.value,
    OTHER_CATEGORY,
)


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Product(CamelModel):
    brand: str
    name: str
    price: int = Field(ge=0)
    image_url: str
    recommended_size: str
    product_url: str
    store_name: str
    category: Optional[ProductCategory] = None
    cropped_image_base64: Optional[str] = None


class SourceImage(CamelModel):
    """A user photo, base64-encoded, with its MIME type."""
    base64: str
    mime_type: str


class StyledImage(CamelModel):
    image_base64: str
    description: str


class StyleResult(CamelModel):
    image_base64: str
    description: str
    products: list[Product] = Field(default_factory=list)


class FollowUpQuestion(CamelModel):
    question: str = Field(min_length=1)
    examples: list[str] = Field(min_length=3, max_length=3)


class PlannedItem(CamelModel):
    category: ProductCategory
    search_keyword: str


class StylePlan(CamelModel):
    description: str = Field(min_length=1)
    items: list[PlannedItem]


class BackgroundContext(CamelModel):
    description: str
    setting: str
    lighting: str


class StyleHistoryItem(CamelModel):
    id: str
    user_email: str
    created_at: datetime
    original_image: SourceImage
    styled_result: StyledImage
    products: list[Product]
    prompt: str


class PurchaseRequestStatus(str, Enum):
    PENDING = "Pending"
    COMPLETED = "Completed"


class PurchaseRequest(CamelModel):
    id: str
    user_email: str
    products: list[Product]
    total_price: int
    status: PurchaseRequestStatus
    created_at: datetime
    completed_at: Optional[datetime] = None


class UserProfile(CamelModel):
    """A user as the admin sees them. Unregistered history owners have empty name and phone."""
    email: str
    name: str = ""
    phone: str = ""
    registered: bool = True
    created_at: Optional[datetime] = None
