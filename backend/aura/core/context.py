"""Process-wide application context and the FastAPI dependencies built on it"""
import logging
from dataclasses import dataclass

import httpx
from fastapi import Depends, Request

from aura.core.cache import ProcessCache
from aura.core.config import Settings
from aura.db.remote_store import RemoteStore
from aura.services.credentials import CredentialProvider, load_build_values
from aura.services.session_service import EncryptedStore, SessionStore
from aura.services.stripe_service import StripeGateway
from aura.utils.encryption import build_cipher

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    """Everything with process lifetime; built once at startup, closed at shutdown"""
    settings: Settings
    cache: ProcessCache
    credentials: CredentialProvider
    session: SessionStore
    http_client: httpx.Client
    gateway: StripeGateway

    def remote_store(self) -> RemoteStore:
        return self.session.remote_store(self.http_client)

    def close(self) -> None:
        self.http_client.close()
        self.cache.clear()


def build_context(settings: Settings) -> AppContext:
    cache = ProcessCache()
    credentials = CredentialProvider(build_values=load_build_values())
    session = SessionStore(
        EncryptedStore(settings.SESSION_STORE_PATH, build_cipher(settings.ENCRYPTION_KEY)),
        default_database_url=settings.SUPABASE_URL,
        default_anon_key=settings.SUPABASE_ANON_KEY,
    )
    http_client = httpx.Client(timeout=settings.HTTP_TIMEOUT)
    return AppContext(
        settings=settings,
        cache=cache,
        credentials=credentials,
        session=session,
        http_client=http_client,
        gateway=StripeGateway(credentials, cache),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_gateway(context: AppContext = Depends(get_context)) -> StripeGateway:
    return context.gateway


def require_store(context: AppContext = Depends(get_context)) -> RemoteStore:
    """Authenticated relational backend client for the current session

    Raises:
        AuraError(AUTHENTICATION_REQUIRED): No session tokens stored
    """
    return context.remote_store()
