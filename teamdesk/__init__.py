"""
TeamDesk
========

Team ticket assignment and tracking service.
"""

__version__ = "1.0.0"
