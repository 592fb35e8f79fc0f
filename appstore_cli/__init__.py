"""
appstore-cli: a client for the App Store's private store-management protocol.
"""

__version__ = "0.3.0"
