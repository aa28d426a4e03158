"""
Chartedart Engines Package

- discovery: Catalog search, query interpretation and personalized recommendations
"""

__version__ = "1.0.0"
