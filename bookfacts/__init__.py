"""
bookfacts: extract structured book facts from free-text queries with Gemini.
"""

__version__ = "0.1.0"
