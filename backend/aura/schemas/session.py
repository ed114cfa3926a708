"""Pydantic schemas for session and database configuration"""
from pydantic import BaseModel


class TokensRequest(BaseModel):
    access_token: str
    refresh_token: str


class InitDatabaseRequest(BaseModel):
    database_url: str
    access_token: str
    anon_key: str
