"""External service interfaces."""

from .background_removal import BackgroundRemover, CallableRemover

__all__ = ["BackgroundRemover", "CallableRemover"]
