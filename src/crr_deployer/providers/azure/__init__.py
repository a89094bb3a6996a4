"""
Azure Provider package.

This package provides the Azure NetApp Files implementation of the
ResourceBackend protocol.
"""

from .provider import AzureProvider
from .backend import AzureNetAppBackend

__all__ = ["AzureProvider", "AzureNetAppBackend"]
