"""
Sender API Routes

Endpoints for programmatic senders, authenticated by API key.
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from src.api.utils.api_key_auth import enforce_api_key_rate_limit
from src.app.services.api_key_codec import ApiKeyCodec
from src.app.use_cases.api_keys import ValidatedApiKey

router = APIRouter(prefix="/v1", tags=["Sender"])


class WhoAmIResponse(BaseModel):
    user_id: str
    email: str
    api_key_id: str
    api_key_name: str
    masked_key: str
    has_app_password: bool


@router.get("/whoami", status_code=status.HTTP_200_OK, response_model=WhoAmIResponse)
async def whoami(validated: ValidatedApiKey = Depends(enforce_api_key_rate_limit)):
    """Identify the API key and its owner"""
    api_key = validated.api_key
    user = validated.user
    return WhoAmIResponse(
        user_id=str(user.id),
        email=user.email,
        api_key_id=str(api_key.id),
        api_key_name=api_key.name,
        masked_key=ApiKeyCodec.mask(api_key.prefix, api_key.suffix),
        has_app_password=user.has_app_password,
    )
