from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from app.core.config import settings
from app.core.database import get_redis
from app.core.security import credentials_exception, decode_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login")


async def get_current_user_id(token: str = Depends(oauth2_scheme)) -> int:
    """
    Resolve the authenticated user id from the bearer token.

    Token issuance lives with the external auth service; the ledger only
    trusts the `sub` claim of a valid, unrevoked access token.
    """
    payload = decode_token(token)
    user_id = payload.get("sub")
    token_type = payload.get("type")

    if user_id is None or token_type != "access":
        raise credentials_exception()

    try:
        user_id = int(user_id)
    except (TypeError, ValueError):
        raise credentials_exception()

    # Check if token is blacklisted (logged out)
    if settings.TOKEN_BLACKLIST_ENABLED:
        redis = await get_redis()
        is_blacklisted = await redis.get(f"blacklist:{token}")
        if is_blacklisted:
            raise credentials_exception("Token has been revoked")

    return user_id
