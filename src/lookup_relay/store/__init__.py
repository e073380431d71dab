"""Persistent tier adapters."""

from .firebase import FirebaseStore, ProfileStore

__all__ = ["FirebaseStore", "ProfileStore"]
