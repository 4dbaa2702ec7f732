"""
Liora - AI investor interviews for startup founders.
"""

__version__ = "0.1.0"
