import base64
import binascii
import logging
import re
from enum import Enum

from .exceptions import DecodeFailure

logger = logging.getLogger(__name__)

ROOT_KEY = "root"
ROOT_DISPLAY = "/"
B64_TAG = "B64:"

_PLAIN_SEGMENT = re.compile(r"^[a-zA-Z0-9]+$")
_HYPHEN_SEGMENT = re.compile(r"^[a-zA-Z0-9-]+$")
_ESCAPED_B64 = re.compile(r":([AB])")
_B64_SUBSTITUTIONS = {"+": ":A", "/": ":B"}
_B64_RESTORE = {"A": "+", "B": "/"}
_HYPHEN_ESCAPE = ":H"


class HyphenPolicy(str, Enum):
    BASE64 = "base64"
    ESCAPE = "escape"


def normalize_path(path: str) -> str:
    """
    Canonical form of a tracked path

    Strips a trailing ``.html`` and one trailing ``/`` and makes sure the
    result starts with ``/``. ``/foo``, ``/foo/`` and ``/foo.html`` all
    normalize to ``/foo``.

    Args:
        path: Raw URL path, possibly empty

    Returns:
        The normalized path, or an empty string for an empty input
    """
    if not path:
        return ""

    processed = path
    if processed.endswith(".html"):
        processed = processed[:-5]
    if len(processed) > 1 and processed.endswith("/"):
        processed = processed[:-1]
    if not processed.startswith("/"):
        processed = "/" + processed
    return processed


class KeyCodec:
    def __init__(self, hyphen_policy: HyphenPolicy = HyphenPolicy.BASE64):
        """
        Maps URL paths to store keys restricted to [a-zA-Z0-9_:] and back

        Args:
            hyphen_policy: Whether hyphenated segments go through Base64
                (BASE64) or stay readable with '-' written as ':H' (ESCAPE)
        """
        self.hyphen_policy = HyphenPolicy(hyphen_policy)

    def encode(self, path: str) -> str:
        """
        Encode a URL path into a store-safe key

        Args:
            path: Raw URL path, possibly empty

        Returns:
            ``root`` for an empty path, otherwise ``_`` followed by the
            encoded segments joined with ``_``
        """
        if not path:
            return ROOT_KEY

        segments = [seg for seg in normalize_path(path).split("/") if seg]
        return "_" + "_".join(self._encode_segment(seg) for seg in segments)

    def decode(self, key: str) -> str:
        """
        Turn a key back into a displayable path

        Never raises. Tokens that fail to decode are shown as-is, and keys
        that are not page keys (e.g. the site counter) are returned
        unchanged.

        Args:
            key: A key produced by ``encode`` or any other stored key

        Returns:
            The display path
        """
        if key == ROOT_KEY:
            return ROOT_DISPLAY
        if not isinstance(key, str) or not key.startswith("_"):
            return key

        tokens = key[1:].split("_")
        return "/" + "/".join(self._decode_token(token) for token in tokens)

    def _encode_segment(self, segment: str) -> str:
        if _PLAIN_SEGMENT.match(segment):
            return segment

        if self.hyphen_policy == HyphenPolicy.ESCAPE and _HYPHEN_SEGMENT.match(segment):
            return segment.replace("-", _HYPHEN_ESCAPE)

        b64 = base64.b64encode(segment.encode("utf-8")).decode("ascii")
        for char, replacement in _B64_SUBSTITUTIONS.items():
            b64 = b64.replace(char, replacement)
        return B64_TAG + b64.rstrip("=")

    def _decode_token(self, token: str) -> str:
        if not token.startswith(B64_TAG):
            if self.hyphen_policy == HyphenPolicy.ESCAPE:
                return token.replace(_HYPHEN_ESCAPE, "-")
            return token

        try:
            return self._decode_b64(token[len(B64_TAG):])
        except DecodeFailure as e:
            logger.debug(f"Showing raw token {token!r}: {e}")
            return token

    @staticmethod
    def _decode_b64(body: str) -> str:
        raw = _ESCAPED_B64.sub(lambda m: _B64_RESTORE[m.group(1)], body)
        raw += "=" * (-len(raw) % 4)
        try:
            return base64.b64decode(raw, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, ValueError) as e:
            raise DecodeFailure(str(e)) from e


default_codec = KeyCodec()


def encode_key(path: str) -> str:
    return default_codec.encode(path)


def decode_key(key: str) -> str:
    return default_codec.decode(key)

