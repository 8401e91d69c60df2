"""Takeout quirks that need special handling."""

from .companion_clips import CompanionClipClassifier

__all__ = ['CompanionClipClassifier']
