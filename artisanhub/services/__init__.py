"""
ArtisanHub services layer.

Orchestration logic that coordinates between core domain logic and adapters:
personalized feed, market insights, similar products, general
recommendations, marketplace operations and community posts.
"""

from artisanhub.services.advisor import Advisor, build_advisor
from artisanhub.services.feed import FeedService
from artisanhub.services.insights import InsightsService, parse_insight_filters
from artisanhub.services.marketplace import MarketplaceService
from artisanhub.services.posts import PostService
from artisanhub.services.recommendations import RecommendationService
from artisanhub.services.similar import SimilarProductsService

__all__ = [
    "Advisor",
    "build_advisor",
    "FeedService",
    "InsightsService",
    "parse_insight_filters",
    "MarketplaceService",
    "PostService",
    "RecommendationService",
    "SimilarProductsService",
]
