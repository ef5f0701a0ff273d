"""Document-sync clients.

This module exposes the DocumentSyncClient contract the session coordinator
depends on, and the Drive-backed implementation used by default.
"""
from .base import DocumentSyncClient
from .drive_sync import DriveProfileSyncClient


__all__ = ['DocumentSyncClient', 'DriveProfileSyncClient']
