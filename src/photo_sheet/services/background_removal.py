"""
Module: services.background_removal

Purpose:
    Interface to an external background-removal service. The service
    itself (a network call) lives outside this package; the session
    only needs something that turns image bytes plus a credential into
    a transparent-background image.

Key Classes:
    - BackgroundRemover: Abstract remover
    - CallableRemover: Adapts a plain function to the interface

Used By:
    - session.PhotoSession.remove_background()
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class BackgroundRemover(ABC):
    """
    Abstract background-removal provider.

    Implementations return the cut-out as encoded image bytes with a
    transparent background, and raise BackgroundRemovalError on
    failure.
    """

    @abstractmethod
    def remove(self, image_bytes: bytes, api_key: str) -> bytes:
        """
        Remove the background from `image_bytes`.

        Args:
            image_bytes: Encoded source image.
            api_key: Service credential.

        Returns:
            Encoded image with transparent background.
        """
        pass


class CallableRemover(BackgroundRemover):
    """
    Wrap a function as a BackgroundRemover.

    Example:
        >>> remover = CallableRemover(lambda data, key: client.cutout(data, key))
    """

    def __init__(self, fn: Callable[[bytes, str], bytes]):
        self._fn = fn

    def remove(self, image_bytes: bytes, api_key: str) -> bytes:
        return self._fn(image_bytes, api_key)
