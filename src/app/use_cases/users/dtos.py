"""
User Use Case DTOs
"""

from typing import List

from pydantic import BaseModel


class ProfileResponse(BaseModel):
    """Current user as seen on the dashboard"""

    id: str
    email: str
    name: str
    role: str
    status: str
    api_key_ids: List[str]
    has_app_password: bool
