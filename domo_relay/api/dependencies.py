"""FastAPI dependencies resolving the service objects created at startup."""

from fastapi import Request

from domo_relay.core.config import Settings
from domo_relay.core.utils.session_store import SessionStore
from domo_relay.providers.domo.services.dataset_relay import DatasetRelay
from domo_relay.providers.domo.services.token_manager import TokenManager


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_token_manager(request: Request) -> TokenManager:
    return request.app.state.token_manager


def get_dataset_relay(request: Request) -> DatasetRelay:
    return request.app.state.dataset_relay


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
