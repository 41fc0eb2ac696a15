"""
FastAPI dependencies for UISketch routers: the Supabase client and the
authenticated caller
"""
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from .middleware import get_auth_middleware

bearer_scheme = HTTPBearer()

def get_supabase() -> Client:
    return get_auth_middleware().supabase

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    Resolve the bearer token to the caller's profile, or fail with 401
    """
    return await get_auth_middleware().verify_token(credentials)
