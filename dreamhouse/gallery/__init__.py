"""Local gallery of saved generations."""

from .models import GalleryItem
from .store import MAX_GALLERY_ITEMS, GalleryStore, StorageError

__all__ = ["GalleryItem", "GalleryStore", "MAX_GALLERY_ITEMS", "StorageError"]
