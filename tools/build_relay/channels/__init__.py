from .base import BaseChannel

__all__ = ["BaseChannel"]
