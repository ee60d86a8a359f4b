"""
Trade Journal - personal trading journal with a live document store.
"""

__version__ = "0.3.0"
