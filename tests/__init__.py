"""Test package for Tap Recall.

Core tests drive the game with a fake clock; UI tests run headlessly using
pygame's dummy video driver to avoid opening real windows. To run these
tests, execute ``pytest`` from the project root.
"""
