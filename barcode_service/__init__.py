"""
Barcode Scanner Service.

Exposes device camera barcode scanning to web applications over HTTP.
"""

__version__ = "1.0.0"
