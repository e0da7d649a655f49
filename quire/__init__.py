"""
Quire: line and word addressable reading core for EPUB and PDF documents.
"""

__version__ = "0.1.0"
