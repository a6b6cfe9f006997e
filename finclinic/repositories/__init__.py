"""
Repositories Package - Financial Clinic Survey Service
finclinic/repositories/__init__.py

Data access layer over the device's local store and the remote service.
"""

from finclinic.repositories.base import BaseRepository
from finclinic.repositories.history_repository import HistoryRepository
from finclinic.repositories.profile_repository import ProfileRepository

__all__ = [
    "BaseRepository",
    "HistoryRepository",
    "ProfileRepository",
]
