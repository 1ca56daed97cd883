"""
Dépendances FastAPI pour l'authentification.

Le cœur ne calcule jamais l'identité: il reçoit un ``CurrentUser`` opaque.
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from src.auth.exceptions import TokenInvalidException, TokenMissingException
from src.auth.models import CurrentUser
from src.auth.security import decode_access_token

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)

async def get_current_user(token: Annotated[Optional[str], Depends(oauth2_scheme)]) -> CurrentUser:
    """Dépendance pour obtenir l'utilisateur courant à partir du token Bearer."""
    if not token:
        raise TokenMissingException()
    user = decode_access_token(token)
    if user is None:
        raise TokenInvalidException()
    return user

CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
