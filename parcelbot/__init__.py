"""
parcelbot - Telegram bot that tracks parcels across many carriers at once.
"""

__version__ = "1.0.0"
