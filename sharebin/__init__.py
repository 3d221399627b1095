"""
ShareBin: short-lived text and file sharing.
"""
__version__ = "1.0.0"
