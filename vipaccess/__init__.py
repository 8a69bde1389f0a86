"""
VipAccess - persistence and bootstrap service for a paywalled video site.

This package contains the complete application:
- core: Document models, key scheme and the bootstrap coordinator
- infrastructure: Object storage client and the JSON metadata store
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
