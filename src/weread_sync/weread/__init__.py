"""
WeRead API Package

Usage:
    from weread_sync.weread import WeReadClient
"""

from weread_sync.weread.client import WeReadAPIError, WeReadClient

__all__ = ['WeReadClient', 'WeReadAPIError']
