# utme_cbt/__init__.py
"""
UTME CBT Question Service
Rate-limited ALOC question acquisition with deduplication and fallback padding
"""

__version__ = "1.0.0"
__description__ = "CBT session assembly backed by the ALOC past-questions API"

# Core module exports
from .core.config import config
from .main import app, create_app

__all__ = ["app", "create_app", "config"]
