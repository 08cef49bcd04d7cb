"""Bilingual storefront for a handmade-flower shop."""

__version__ = "1.0.0"
