from .base import Executor
from .dispatcher import BuildDispatcher

__all__ = ["Executor", "BuildDispatcher"]
