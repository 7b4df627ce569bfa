"""
API Routes for the analytics API
"""

from .analytics import analytics_bp
from .business_intelligence import bi_bp

__all__ = ['analytics_bp', 'bi_bp']
