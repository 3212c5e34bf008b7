"""
ArtisanHub adapters layer.

External service wrappers used by the service layer: generative-AI clients
and the marketplace document store.
"""

# LLM clients
from artisanhub.adapters.llm import (
    AnthropicClient,
    GeminiClient,
    LLMClient,
    OpenAIClient,
    get_llm_client,
)

# Document store
from artisanhub.adapters.repository import (
    InMemoryRepository,
    MarketplaceRepository,
    MongoRepository,
    ProductQuery,
    get_repository,
    new_id,
)

__all__ = [
    # LLM
    "LLMClient",
    "AnthropicClient",
    "GeminiClient",
    "OpenAIClient",
    "get_llm_client",
    # Document store
    "MarketplaceRepository",
    "InMemoryRepository",
    "MongoRepository",
    "ProductQuery",
    "get_repository",
    "new_id",
]
