# src/scrapers/synthetic_generator.py

"""Plausible random product records for development and testing."""

import logging
import random
from dataclasses import dataclass

from src.models.product import NormalizedProduct, SourceStrategy

logger = logging.getLogger("market_tracker.synthetic")


@dataclass(frozen=True)
class SyntheticProfile:
    """Name pool and value ranges used for one platform."""

    names: tuple[str, ...]
    price_range: tuple[int, int]
    sales_range: tuple[int, int]
    reviews_range: tuple[int, int]
    rating_range: tuple[float, float] = (4.0, 5.0)


_DEFAULT_PROFILE = SyntheticProfile(
    names=(
        "Áo thun cotton basic unisex form rộng",
        "Tai nghe bluetooth TWS 5.0 chống ồn",
        "Serum Vitamin C 20% trắng da mờ thâm",
        "Nồi chiên không dầu 5.5L cao cấp",
        "Giày thể thao nam nữ running",
    ),
    price_range=(100_000, 600_000),
    sales_range=(100, 2_100),
    reviews_range=(50, 550),
)

PROFILES: dict[str, SyntheticProfile] = {
    "shopee": _DEFAULT_PROFILE,
    "tiktok": SyntheticProfile(
        names=(
            "Áo thun TikTok trending",
            "Tai nghe gaming RGB",
            "Điện thoại selfie 64MP",
            "Balo laptop chống nước",
            "Đồng hồ thông minh fitness",
        ),
        price_range=(50_000, 350_000),
        sales_range=(50, 1_050),
        reviews_range=(20, 220),
    ),
}


class SyntheticGenerator:
    """Synthetic strategy. Only used when the caller opts in."""

    strategy = SourceStrategy.SYNTHETIC

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def generate_mock(self, platform: str) -> NormalizedProduct:
        """Return a random but plausible record tagged ``synthetic``."""
        profile = PROFILES.get(platform, _DEFAULT_PROFILE)
        rng = self._rng
        low, high = profile.rating_range
        product = NormalizedProduct(
            name=rng.choice(profile.names),
            price=rng.randint(*profile.price_range),
            sales=rng.randint(*profile.sales_range),
            rating=round(rng.uniform(low, high), 1),
            reviews=rng.randint(*profile.reviews_range),
            platform=platform,
            source_strategy=SourceStrategy.SYNTHETIC,
        )
        logger.info(
            "[%s] Generated synthetic product '%s'", platform, product.name
        )
        return product
