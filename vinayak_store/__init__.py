"""
Vinayak Store cart and pricing core.
"""
__version__ = "1.0.0"
