"""
utils/ - Shared Helpers
=======================
Logging, money arithmetic and exceptions used by every layer.
"""
