"""
Key pair handling for signing bearer tokens.
"""

from pathlib import Path

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import (
    BestAvailableEncryption,
    Encoding,
    PrivateFormat,
    PublicFormat,
    load_pem_private_key,
    load_pem_public_key,
)


class UnsupportedEncryptionMethod(Exception):
    pass


class EncryptionSerializationError(Exception):
    pass


def generate_key_pair(key_pair_type: str, key_password: str) -> tuple[bytes, bytes]:
    """
    Generate a public/private key pair for signing tokens.

    Parameters
    ----------
    key_pair_type
        The key pair type to use, currently only Ed25519 is supported.
    key_password
        The password used to encrypt the private key.

    Returns
    -------
    public_key: bytes
        The PEM serialized public key.
    private_key: bytes
        The PEM serialized (encrypted) private key.
    """

    match key_pair_type:
        case "Ed25519":
            private = Ed25519PrivateKey.generate()
        case _:
            raise UnsupportedEncryptionMethod(f"Key pair type {key_pair_type}")

    private_key = private.private_bytes(
        encoding=Encoding.PEM,
        format=PrivateFormat.PKCS8,
        encryption_algorithm=BestAvailableEncryption(
            password=key_password.encode("utf-8")
        ),
    )
    public_key = private.public_key().public_bytes(
        encoding=Encoding.PEM, format=PublicFormat.SubjectPublicKeyInfo
    )

    return public_key, private_key


def write_key_pair(
    public_key: bytes, private_key: bytes, public_path: Path, private_path: Path
) -> None:
    """
    Write a key pair to disk, readable only by the current user.
    """
    for path, content in ((public_path, public_key), (private_path, private_key)):
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        path.chmod(0o600)


def read_key_pair(public_path: Path, private_path: Path) -> tuple[bytes, bytes]:
    return public_path.read_bytes(), private_path.read_bytes()


def deserialize_private_key(private_key: bytes, key_password: str):
    try:
        return load_pem_private_key(
            data=private_key, password=key_password.encode("utf-8")
        )
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise EncryptionSerializationError("Unable to reconstruct private key")


def deserialize_public_key(public_key: bytes):
    try:
        return load_pem_public_key(data=public_key)
    except (ValueError, UnsupportedAlgorithm):
        raise EncryptionSerializationError("Unable to reconstruct public key")
