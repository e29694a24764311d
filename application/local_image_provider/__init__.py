"""Local image provider application services."""

from .dispatcher import CHANNEL_NAME, LocalImageProviderPlugin, MethodCall
from .factory import create_local_image_provider
from .image_request import ImageResultFuture, encode_jpeg
from .requests import LocalImageProviderMethods
from .session import ProviderSession

__all__ = [
    "CHANNEL_NAME",
    "ImageResultFuture",
    "LocalImageProviderMethods",
    "LocalImageProviderPlugin",
    "MethodCall",
    "ProviderSession",
    "create_local_image_provider",
    "encode_jpeg",
]
