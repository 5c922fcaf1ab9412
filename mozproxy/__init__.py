"""
Moz API proxy - fans out SEO data calls to the Moz JSON-RPC API
"""

__version__ = "1.0.0"
