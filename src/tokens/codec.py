"""
Compact token codec.

Encodes and decodes the ``header.payload.signature`` structure of a signed
token. Pure functions, no I/O and no cryptography: the signature segment is
decoded to bytes but never checked here.
"""

import base64
import binascii
from dataclasses import dataclass
import json
from typing import Any

SEGMENT_SEPARATOR = "."


class MalformedTokenError(ValueError):
    pass


@dataclass(frozen=True)
class DecodedToken:
    header: dict[str, Any]
    payload: dict[str, Any]
    signature: bytes
    signing_input: bytes

    def as_complete(self) -> dict[str, Any]:
        return {
            "header": self.header,
            "payload": self.payload,
            "signature": b64url_encode(self.signature),
        }


def b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode((data + padding).encode("ascii"))
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise MalformedTokenError("Segment is not valid base64url") from exc


def encode_segment(value: dict[str, Any]) -> str:
    return b64url_encode(json.dumps(value, separators=(",", ":")).encode("utf-8"))


def decode_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        value = json.loads(b64url_decode(segment))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedTokenError(f"Token {name} is not valid JSON") from exc
    except RecursionError as exc:
        raise MalformedTokenError(f"Token {name} is nested too deeply") from exc
    if not isinstance(value, dict):
        raise MalformedTokenError(f"Token {name} must be a JSON object")
    return value


def split_token(token: str) -> tuple[str, str, str]:
    if not isinstance(token, str) or not token:
        raise MalformedTokenError("Token must be a non-empty string")
    parts = token.strip().split(SEGMENT_SEPARATOR)
    if len(parts) != 3:
        raise MalformedTokenError(
            f"Token must have 3 segments separated by '{SEGMENT_SEPARATOR}', got {len(parts)}"
        )
    header_segment, payload_segment, signature_segment = parts
    if not header_segment or not payload_segment:
        raise MalformedTokenError("Token header and payload segments must not be empty")
    return header_segment, payload_segment, signature_segment


def parse_token(token: str) -> DecodedToken:
    """
    Parse a compact token into its decoded parts without verifying anything.

    :raises MalformedTokenError: If the token does not have three base64url
        segments or its header/payload are not JSON objects.
    """
    header_segment, payload_segment, signature_segment = split_token(token)
    return DecodedToken(
        header=decode_segment(header_segment, "header"),
        payload=decode_segment(payload_segment, "payload"),
        signature=b64url_decode(signature_segment),
        signing_input=f"{header_segment}.{payload_segment}".encode("ascii"),
    )


def assemble_token(header: dict[str, Any], payload: dict[str, Any], signature: bytes) -> str:
    return SEGMENT_SEPARATOR.join(
        (encode_segment(header), encode_segment(payload), b64url_encode(signature))
    )
