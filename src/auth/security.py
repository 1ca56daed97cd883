"""
Création et décodage des tokens JWT.

L'émission des tokens appartient au service d'authentification externe;
``create_access_token`` sert aux outils et aux tests.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from jose import JWTError, jwt

from src.auth.models import CurrentUser
from src.config import settings

logger = logging.getLogger(__name__)

def create_access_token(user_id: int, role: str = "USER", location_ids: Iterable[int] = (),
                        expires_delta: Optional[timedelta] = None) -> str:
    """Crée un token JWT portant l'identité, le rôle et les sites de l'utilisateur."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode = {
        "sub": str(user_id),
        "role": role,
        "location_ids": list(location_ids),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

def decode_access_token(token: str) -> Optional[CurrentUser]:
    """Décode un token JWT et retourne l'utilisateur courant, ou None si invalide/expiré."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"Token JWT invalide: {e}")
        return None

    user_id_str = payload.get("sub")
    if user_id_str is None:
        logger.warning("Token JWT décodé mais sans champ 'sub' (user_id).")
        return None
    try:
        return CurrentUser(
            user_id=int(user_id_str),
            role=payload.get("role", "USER"),
            location_ids=payload.get("location_ids") or [],
        )
    except ValueError:
        logger.warning(f"Le champ 'sub' dans le token n'est pas un entier valide: '{user_id_str}'")
        return None
