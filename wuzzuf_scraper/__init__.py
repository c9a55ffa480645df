"""
Job-listing crawler for wuzzuf.net.
"""

__version__ = "0.1.0"
