"""
User Use Cases

Profile and app password management for the signed-in user.
"""

from .app_password_use_case import AppPasswordUseCase
from .dtos import ProfileResponse
from .load_profile_use_case import LoadProfileUseCase

__all__ = [
    "AppPasswordUseCase",
    "LoadProfileUseCase",
    "ProfileResponse",
]
