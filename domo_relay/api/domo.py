"""
Domo token endpoints.

Hands out freshly granted tokens to the front end. These grants bypass the
relay's cached token and never modify it.
"""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, status

from domo_relay.api.dependencies import get_settings, get_token_manager
from domo_relay.core.config import Settings
from domo_relay.core.exceptions import RelayError, TokenAcquisitionError
from domo_relay.core.schemas.dataset import AccessTokenResponse, EmbedTokenResponse
from domo_relay.providers.domo.services.token_manager import TokenManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/domo", tags=["Domo Tokens"])


def _is_invalid_client(error: TokenAcquisitionError) -> bool:
    details = error.details
    return isinstance(details, dict) and details.get("error") == "invalid_client"


def build_embed_url(card_id: str, access_token: str, settings: Settings) -> str:
    query = urlencode(
        {
            "access_token": access_token,
            "domoapps": "true",
            "embed_domain": settings.EMBED_DOMAIN,
        }
    )
    return f"{settings.EMBED_BASE_URL.rstrip('/')}/embed/cards/{card_id}?{query}"


@router.get("/token/{dataset_id}", response_model=AccessTokenResponse)
async def get_access_token(
    dataset_id: str,
    tokens: TokenManager = Depends(get_token_manager),
    settings: Settings = Depends(get_settings),
):
    """Grant a fresh token for the front end and return its access_token."""
    try:
        payload = await tokens.request_token(settings.DOMO_PASSTHROUGH_SCOPE)
    except TokenAcquisitionError as e:
        raise RelayError(
            "Failed to generate token",
            details=e.details,
            status_code=status.HTTP_400_BAD_REQUEST,
        ) from e
    return AccessTokenResponse(access_token=payload.get("access_token", ""))


@router.get("/embed-token/{card_id}", response_model=EmbedTokenResponse)
async def get_embed_token(
    card_id: str,
    tokens: TokenManager = Depends(get_token_manager),
    settings: Settings = Depends(get_settings),
):
    """
    Grant a token for embedding a card and build the embed URL for it.

    Domo has no separate embed-token API for private embeds; the OAuth token
    is passed as the ``access_token`` query parameter of the embed URL.
    """
    logger.info(f"Generating embed token for card: {card_id}")
    try:
        payload = await tokens.request_token(settings.DOMO_EMBED_SCOPE)
    except TokenAcquisitionError as e:
        if _is_invalid_client(e):
            raise RelayError(
                "Invalid Domo Client ID or Secret",
                details="Check the DOMO_CLIENT_ID and DOMO_CLIENT_SECRET environment variables",
                status_code=status.HTTP_400_BAD_REQUEST,
            ) from e
        raise RelayError("Failed to generate embed token", details=e.details) from e

    access_token = payload.get("access_token", "")
    return EmbedTokenResponse(
        access_token=access_token,
        embed_url=build_embed_url(card_id, access_token, settings),
    )
