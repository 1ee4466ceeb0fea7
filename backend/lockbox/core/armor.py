"""Structural checks for ASCII-armored OpenPGP blocks.

The server never decrypts user data; it only verifies that what it stores
looks like a well-formed armor (RFC 4880 section 6): a BEGIN line, optional
armor headers, a blank line, base64 data, an optional CRC-24 checksum and the
matching END line.
"""

import base64
import binascii
import re
from typing import Optional

MESSAGE = "MESSAGE"
PUBLIC_KEY_BLOCK = "PUBLIC KEY BLOCK"
PRIVATE_KEY_BLOCK = "PRIVATE KEY BLOCK"

_ARMOR_PATTERN = re.compile(
    r"^-----BEGIN PGP (?P<type>[A-Z ,/0-9]+)-----\r?\n"
    r"(?P<headers>(?:[^\r\n:]+: [^\r\n]*\r?\n)*)"
    r"\r?\n"
    r"(?P<body>[A-Za-z0-9+/=\r\n]+?)"
    r"(?:\r?\n=(?P<crc>[A-Za-z0-9+/]{4}))?"
    r"\r?\n-----END PGP (?P=type)-----\s*$"
)

_CRC24_INIT = 0xB704CE
_CRC24_POLY = 0x1864CFB


def crc24(data: bytes) -> int:
    """OpenPGP CRC-24 of *data*."""
    crc = _CRC24_INIT
    for byte in data:
        crc ^= byte << 16
        for _ in range(8):
            crc <<= 1
            if crc & 0x1000000:
                crc ^= _CRC24_POLY
    return crc & 0xFFFFFF


def dearmor(armored: str, expected_type: Optional[str] = None) -> Optional[bytes]:
    """Return the binary payload of an armored block, or None if it is malformed.

    When *expected_type* is given (e.g. ``MESSAGE``), the armor label must match.
    """
    if not isinstance(armored, str):
        return None
    match = _ARMOR_PATTERN.match(armored.strip() + "\n")
    if match is None:
        return None
    if expected_type is not None and match.group("type") != expected_type:
        return None

    body = "".join(match.group("body").split())
    try:
        payload = base64.b64decode(body, validate=True)
    except (binascii.Error, ValueError):
        return None
    if not payload:
        return None

    checksum = match.group("crc")
    if checksum is not None:
        try:
            expected = int.from_bytes(base64.b64decode(checksum, validate=True), "big")
        except (binascii.Error, ValueError):
            return None
        if crc24(payload) != expected:
            return None

    return payload


def is_parsable_message(armored: str) -> bool:
    return dearmor(armored, MESSAGE) is not None


def is_parsable_public_key(armored: str) -> bool:
    return dearmor(armored, PUBLIC_KEY_BLOCK) is not None


def armor(payload: bytes, armor_type: str = MESSAGE) -> str:
    """Build an armored block around *payload* (used by fixtures and tooling)."""
    encoded = base64.b64encode(payload).decode("ascii")
    lines = [encoded[i:i + 64] for i in range(0, len(encoded), 64)]
    checksum = base64.b64encode(crc24(payload).to_bytes(3, "big")).decode("ascii")
    return "\n".join(
        [f"-----BEGIN PGP {armor_type}-----", ""]
        + lines
        + [f"={checksum}", f"-----END PGP {armor_type}-----", ""]
    )


# OpenPGP packet tags opening an encrypted message (RFC 4880 section 4.3).
_PKESK_TAG = 1
_SKESK_TAG = 3


def first_packet_tag(payload: bytes) -> Optional[int]:
    """Tag of the first OpenPGP packet in *payload*, or None if the header is invalid."""
    if not payload or not payload[0] & 0x80:
        return None
    if payload[0] & 0x40:
        return payload[0] & 0x3F
    return (payload[0] >> 2) & 0x0F


def is_encrypted_message(armored: str) -> bool:
    """True when *armored* is a message starting with a session key packet."""
    payload = dearmor(armored, MESSAGE)
    if payload is None:
        return False
    return first_packet_tag(payload) in (_PKESK_TAG, _SKESK_TAG)
