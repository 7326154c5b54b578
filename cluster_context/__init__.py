"""
Multi-source cluster context aggregation.
"""

__version__ = "0.1.0"
