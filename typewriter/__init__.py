"""
Typewriter text engine: cycles phrases with a typing, pausing and deleting effect
"""

__version__ = "0.1.0"
