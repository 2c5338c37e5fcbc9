"""
Level Up Dashboard Database Package
Local persistence for the operator session
"""

from .session_store import SessionStore

__all__ = ['SessionStore']
