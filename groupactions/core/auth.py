"""
One-stop functionality for decoding access tokens
"""

from cachetools import TTLCache, cached
from pydantic import BaseModel, ValidationError

from groupactions.core.tokens import KeyDecodeError, reconstruct_payload


class TokenSubject(BaseModel):
    user_id: int
    uuid: str


@cached(cache=TTLCache(maxsize=256, ttl=60))
def decode_access_token(
    encoded_access_token: str | bytes, public_key: bytes, key_pair_type: str
) -> TokenSubject:
    """
    Raises
    ------
    KeyDecodeError
        When there is a problem decoding the token
    KeyExpiredError
        When the token has expired
    """

    payload = reconstruct_payload(
        webtoken=encoded_access_token,
        public_key=public_key,
        key_pair_type=key_pair_type,
    )

    try:
        return TokenSubject(user_id=payload.get("sub"), uuid=payload.get("uuid"))
    except ValidationError:
        raise KeyDecodeError("Token subject is not a user")
