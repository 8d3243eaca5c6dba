"""
Blob storage for prescription documents.
"""
from .base import BlobStore, StoredObject
from .cloudinary_store import CloudinaryBlobStore

__all__ = ["BlobStore", "StoredObject", "CloudinaryBlobStore"]
