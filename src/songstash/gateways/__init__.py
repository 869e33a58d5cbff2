"""Built-in provider gateways."""

from .music_api import MusicApiGateway

__all__ = ["MusicApiGateway"]
