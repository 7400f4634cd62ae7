import base64
import binascii
from typing import Union

from nacl.bindings import crypto_box
from nacl.encoding import RawEncoder
from nacl.exceptions import CryptoError
from nacl.hash import blake2b
from nacl.public import PrivateKey

from envmanager.core.exceptions import (
    EncryptionFailure,
    InvalidKeyError,
    RandomSourceFailure,
)
from envmanager.models.github import PublicKey, SealedSecret

KEY_SIZE = 32
NONCE_SIZE = 24
MAC_SIZE = 16


def decode_public_key(public_key: str) -> bytes:
    """
    Decode a base64 recipient key as returned by GitHub's public-key endpoints.

    Args:
        public_key: Standard base64 (padded) encoding of a Curve25519 key

    Returns:
        The raw 32-byte key

    Raises:
        InvalidKeyError: If the value is not valid base64 or not 32 bytes long
    """
    try:
        raw = base64.b64decode(public_key, validate=True)
    except (TypeError, ValueError, binascii.Error):
        raise InvalidKeyError("Public key is not valid base64")

    if len(raw) != KEY_SIZE:
        raise InvalidKeyError(
            f"Public key must decode to {KEY_SIZE} bytes, got {len(raw)}"
        )
    return raw


def derive_nonce(ephemeral_public_key: bytes, recipient_public_key: bytes) -> bytes:
    """BLAKE2b-192 over the ephemeral key followed by the recipient key."""
    return blake2b(
        ephemeral_public_key + recipient_public_key,
        digest_size=NONCE_SIZE,
        encoder=RawEncoder,
    )


def seal_secret(public_key: str, plaintext: Union[str, bytes]) -> str:
    """
    Encrypt a secret value for GitHub with an anonymous sealed box.

    A fresh ephemeral key pair is generated for every call, so sealing the same
    value twice never yields the same output. The result opens with libsodium's
    crypto_box_seal_open using the recipient's private key.

    Args:
        public_key: Base64 recipient key from GitHub's "get public key" response
        plaintext: Secret value; str is encoded as UTF-8, bytes are sealed as-is

    Returns:
        Base64 of ephemeral public key + box ciphertext, for ``encrypted_value``

    Raises:
        InvalidKeyError: If the recipient key is malformed
        RandomSourceFailure: If the system random source cannot supply a key
        EncryptionFailure: If the box primitive rejects its input
    """
    recipient_key = decode_public_key(public_key)
    try:
        message = plaintext.encode("utf-8") if isinstance(plaintext, str) else bytes(plaintext)
    except UnicodeEncodeError:
        # Lone surrogates survive JSON decoding but have no UTF-8 form
        raise EncryptionFailure("Secret value is not encodable as UTF-8") from None

    try:
        ephemeral_key = PrivateKey.generate()
    except (OSError, CryptoError) as e:
        raise RandomSourceFailure(
            f"Could not generate ephemeral key: {type(e).__name__}"
        ) from None

    ephemeral_public = bytes(ephemeral_key.public_key)
    nonce = derive_nonce(ephemeral_public, recipient_key)

    try:
        ciphertext = crypto_box(message, nonce, recipient_key, bytes(ephemeral_key))
    except CryptoError as e:
        raise EncryptionFailure(
            f"Box encryption failed: {type(e).__name__}"
        ) from None

    return base64.b64encode(ephemeral_public + ciphertext).decode("ascii")


def seal_for_github(public_key: PublicKey, plaintext: Union[str, bytes]) -> SealedSecret:
    """Seal a value and pair it with the key_id GitHub needs to open it."""
    return SealedSecret(
        encrypted_value=seal_secret(public_key.key, plaintext),
        key_id=public_key.key_id,
    )
