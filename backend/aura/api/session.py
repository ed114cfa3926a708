"""Session API routes (local token storage and backend configuration)"""
import logging
from fastapi import APIRouter, Depends

from aura.core.context import AppContext, get_context
from aura.schemas.session import InitDatabaseRequest, TokensRequest

router = APIRouter(prefix="/api/session", tags=["session"])
logger = logging.getLogger(__name__)


@router.post("/tokens")
def store_tokens(body: TokensRequest, context: AppContext = Depends(get_context)):
    """Store access/refresh tokens after sign-in"""
    context.session.store_tokens(body.access_token, body.refresh_token)
    return {"stored": True}


@router.put("/tokens")
def update_tokens(body: TokensRequest, context: AppContext = Depends(get_context)):
    """Replace tokens after a refresh"""
    context.session.update_tokens(body.access_token, body.refresh_token)
    return {"stored": True}


@router.get("/check")
def check_session(context: AppContext = Depends(get_context)):
    return {"has_session": context.session.check_session()}


@router.post("/logout")
def logout(context: AppContext = Depends(get_context)):
    context.session.logout()
    return {"logged_out": True}


@router.post("/database")
def init_database(body: InitDatabaseRequest, context: AppContext = Depends(get_context)):
    context.session.init_database(body.database_url, body.access_token, body.anon_key)
    return context.session.get_database_status()


@router.get("/database/status")
def database_status(context: AppContext = Depends(get_context)):
    return context.session.get_database_status()
