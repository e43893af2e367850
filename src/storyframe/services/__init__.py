"""External service integrations."""

from .anthropic import AnthropicClient
from .imagen import ImagenClient, ImageResult, first_image, sample_image_size

__all__ = [
    "AnthropicClient",
    "ImagenClient",
    "ImageResult",
    "first_image",
    "sample_image_size",
]
