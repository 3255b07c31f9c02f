"""Shared database models."""

from .base import Base
from .note import ResultHistory, SmartNote
from .queue import QueueEntry

__all__ = ["Base", "QueueEntry", "ResultHistory", "SmartNote"]
