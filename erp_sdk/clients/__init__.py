# erp_sdk/clients/__init__.py
from .base import RemoteServiceClient, mask_secret

__all__ = ["RemoteServiceClient", "mask_secret"]
