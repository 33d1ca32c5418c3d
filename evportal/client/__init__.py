"""Python client for the dealer portal REST API"""
from .session import PortalSession
from .api import PortalClient, PromotionRecord

__all__ = ['PortalSession', 'PortalClient', 'PromotionRecord']
