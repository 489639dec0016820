"""
Token revocation backed by Redis.

Logging out blacklists the presented JWT until it would have expired anyway.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"

logger = logging.getLogger("fleetflow.auth")


def _remaining_ttl(payload: Dict[str, Any]) -> int:
    exp = payload.get("exp")
    if exp is None:
        return 1
    remaining = int(exp - datetime.now(timezone.utc).timestamp())
    return max(remaining, 1)


async def revoke_token(redis, token: str, payload: Dict[str, Any]) -> bool:
    """
    Revoke a specific JWT token by adding it to the blacklist.

    Args:
        redis: Redis client (from the get_redis dependency)
        token: The JWT token string to revoke
        payload: Its decoded claims; "exp" bounds the blacklist entry

    Returns:
        True if successfully revoked, False otherwise
    """
    try:
        await redis.setex(
            f"{TOKEN_BLACKLIST_PREFIX}{token}",
            _remaining_ttl(payload),
            str(payload.get("user_id")),
        )
        return True
    except Exception:
        logger.exception("Error revoking token for user %s", payload.get("user_id"))
        return False


async def is_token_revoked(redis, token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is unreachable the token is treated as valid and the outage is
    logged; signature and expiry are still enforced.
    """
    try:
        return await redis.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except Exception:
        logger.warning("Token revocation check skipped, Redis unavailable", exc_info=True)
        return False
