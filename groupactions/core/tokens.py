"""
Tools for encoding, building, and decoding bearer tokens (JWTs).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from groupactions.core.uuid import UUID, uuid7

from .cryptography import (
    EncryptionSerializationError,
    UnsupportedEncryptionMethod,
    deserialize_private_key,
    deserialize_public_key,
)


class KeyDecodeError(Exception):
    pass


class KeyExpiredError(Exception):
    pass


def match_key_pair_type_to_pyjwt_algorithm(key_pair_type: str) -> str:
    match key_pair_type:
        case "Ed25519":
            algorithm = "EdDSA"
        case _:
            raise UnsupportedEncryptionMethod

    return algorithm


def filter_payload_item_for_serialization(p) -> Any:
    match p:
        case UUID():
            return p.hex
        case set():
            return list(p)
        case _:
            return p


def sign_payload(
    key_password: str,
    private_key: bytes,
    key_pair_type: str,
    payload: dict[str, Any],
) -> str:
    """
    Sign a JWT payload; requires decrypting the private key and using it.

    Parameters
    ----------
    key_password
        The password for the private key.
    private_key
        The encrypted private key.
    key_pair_type
        The type of key (e.g. Ed25519).
    payload
        The payload for the JWT to sign.
    """

    key = deserialize_private_key(private_key=private_key, key_password=key_password)
    algorithm = match_key_pair_type_to_pyjwt_algorithm(key_pair_type=key_pair_type)

    return jwt.encode(
        payload={
            x: filter_payload_item_for_serialization(p) for x, p in payload.items()
        },
        key=key,
        algorithm=algorithm,
    )


def reconstruct_payload(
    webtoken: str | bytes, public_key: bytes, key_pair_type: str
) -> dict[str, Any]:
    """
    Verify a JWT and return its payload.

    Raises
    ------
    KeyExpiredError
        If the `exp` claim has passed.
    KeyDecodeError
        If the token is malformed or was not signed by our key.
    """

    try:
        key = deserialize_public_key(public_key=public_key)
        algorithm = match_key_pair_type_to_pyjwt_algorithm(key_pair_type=key_pair_type)

        payload = jwt.decode(
            jwt=webtoken,
            key=key,
            algorithms=[algorithm],
        )
    except jwt.ExpiredSignatureError:
        raise KeyExpiredError("Token has expired")
    except (jwt.InvalidTokenError, EncryptionSerializationError):
        raise KeyDecodeError("Unable to decode token")

    return payload


def build_access_token_payload(user_id: int, validity: timedelta) -> dict[str, Any]:
    """
    Builds the payload for an access token. The subject claim carries the
    user ID; JWT requires it to be a string.
    """
    current_time = datetime.now(timezone.utc)

    return {
        "sub": str(user_id),
        "exp": current_time + validity,
        "nbf": current_time,
        "iat": current_time,
        "uuid": uuid7(),
    }
