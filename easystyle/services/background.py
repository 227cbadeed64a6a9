"""
Backdrop selection for the synthesized style image.

An ordered list of keyword rules is matched against the prompt and the
planner's description. First match wins; no scoring.
"""

from dataclasses import dataclass
from typing import Optional

from ..schemas.styling import BackgroundContext


@dataclass(frozen=True)
class BackgroundRule:
    name: str
    keywords: tuple[str, ...]
    context: BackgroundContext

    def matches(self, text: str) -> bool:
        return any(keyword in text for keyword in self.keywords)


RULES: tuple[BackgroundRule, ...] = (
    BackgroundRule(
        name="business",
        keywords=("비즈니스", "정장", "회사", "미팅", "오피스", "formal", "business"),
        context=BackgroundContext(
            description="Modern office environment with clean glass windows and city view",
            setting="Professional office space with minimalist interior design",
            lighting="Natural daylight from large windows with soft indoor lighting",
        ),
    ),
    BackgroundRule(
        name="casual",
        keywords=("데이트", "카페", "브런치", "casual", "date", "coffee"),
        context=BackgroundContext(
            description="Cozy urban cafe setting with warm wooden interior and plants",
            setting="Trendy cafe with exposed brick walls and natural materials",
            lighting="Warm ambient lighting with natural window light",
        ),
    ),
    BackgroundRule(
        name="party",
        keywords=("파티", "클럽", "밤", "party", "night", "evening"),
        context=BackgroundContext(
            description="Sophisticated urban nightlife setting with city lights",
            setting="Upscale rooftop lounge or modern bar with city skyline",
            lighting="Moody evening lighting with warm accent lights and city glow",
        ),
    ),
    BackgroundRule(
        name="outdoor",
        keywords=("야외", "공원", "걷기", "outdoor", "park", "활동"),
        context=BackgroundContext(
            description="Beautiful urban park setting with trees and modern architecture",
            setting="Contemporary city park with walking paths and green spaces",
            lighting="Natural daylight with soft shadows from trees",
        ),
    ),
    BackgroundRule(
        name="street",
        keywords=("쇼핑", "거리", "스트리트", "shopping", "street", "urban"),
        context=BackgroundContext(
            description="Vibrant city street with modern storefronts and urban atmosphere",
            setting="Stylish shopping district with contemporary architecture",
            lighting="Bright daylight with urban ambiance",
        ),
    ),
    BackgroundRule(
        name="travel",
        keywords=("여행", "휴가", "바다", "travel", "vacation", "beach"),
        context=BackgroundContext(
            description="Scenic travel destination with beautiful natural backdrop",
            setting="Picturesque location with natural beauty and architectural elements",
            lighting="Golden hour lighting with natural warm tones",
        ),
    ),
)

DEFAULT_CONTEXT = BackgroundContext(
    description="Clean, modern studio setting with subtle architectural elements",
    setting="Minimalist contemporary space with neutral tones and geometric elements",
    lighting="Professional studio lighting with soft, even illumination",
)


def match_rule(prompt: str, description: str) -> Optional[BackgroundRule]:
    """Return the first rule whose keywords appear in the combined text."""
    text = f"{prompt} {description}".lower()
    for rule in RULES:
        if rule.matches(text):
            return rule
    return None


def resolve_context(prompt: str, description: str) -> BackgroundContext:
    """Pick the backdrop for a style. Falls back to the studio default."""
    rule = match_rule(prompt, description)
    return rule.context if rule else DEFAULT_CONTEXT
