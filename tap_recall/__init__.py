"""Tap Recall: tap ten scattered numbers in ascending order from memory."""

__version__ = "0.1.0"
