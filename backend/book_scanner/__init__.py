"""
Book Scanner

Identifies Hebrew books from a photo of the cover: OCR, LLM metadata
inference and a Google Books cover lookup.
"""

__version__ = "0.1.0"
