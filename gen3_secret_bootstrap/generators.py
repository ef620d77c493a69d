# -*- coding: utf-8 -*-
"""Secure random material for new secrets.

All functions draw from the operating system CSPRNG. A failing entropy source is
raised as ``EntropyFailure`` and aborts the bootstrap pass.
"""

import base64
import secrets
import string
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import EntropyFailure

# Letters and digits only so a password needs no quoting in shells, URLs or DSNs
ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits


@dataclass
class SigningKeyPair:
    private_key_pem: str
    public_key_pem: str


def generate_password(length):
    """Generates a password of exactly ``length`` alphanumeric characters.

    Args:
        length (int): Number of characters, must be positive.

    Returns:
        str: The password.
    """
    if length <= 0:
        raise ValueError(f"Password length must be positive got {length}")
    try:
        return "".join(secrets.choice(ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as e:
        raise EntropyFailure(e) from e


def generate_random_bytes_base64(byte_length):
    """Returns ``byte_length`` random bytes as a standard base64 string."""
    try:
        raw = secrets.token_bytes(byte_length)
    except (OSError, NotImplementedError) as e:
        raise EntropyFailure(e) from e
    return base64.b64encode(raw).decode("ascii")


def generate_signing_key_pair(bits=2048):
    """Generates an RSA key pair for RS256 token signing.

    The private key is PKCS#8 PEM and the public key SubjectPublicKeyInfo PEM, neither
    encrypted.

    Args:
        bits (int, optional): Modulus size. Defaults to 2048.

    Returns:
        SigningKeyPair: Both keys PEM encoded.
    """
    try:
        private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    except (OSError, NotImplementedError) as e:
        raise EntropyFailure(e) from e

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return SigningKeyPair(
        private_key_pem=private_pem.decode("ascii"),
        public_key_pem=public_pem.decode("ascii"),
    )
