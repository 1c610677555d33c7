"""
Signed URL Service

Issues and verifies stateless, time-limited access tokens for backends
without native expiring URLs. A token carries the storage key it grants,
optional response headers and its expiry, signed with HMAC-SHA256.
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
import os
import secrets
import time
from datetime import datetime, timezone
from typing import Optional, Tuple
from urllib.parse import quote

from storefront.domain.errors import AccessTokenError

from .entities import AccessTokenClaims

logger = logging.getLogger(__name__)


def _b64encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64decode(text: str) -> bytes:
    padding = "=" * (-len(text) % 4)
    return base64.urlsafe_b64decode(text + padding)


class SignedUrlService:
    """
    Service for issuing and verifying signed access tokens.

    Tokens have the form ``<payload>.<signature>`` where the payload is the
    URL-safe base64 of the JSON claims and the signature is the URL-safe
    base64 HMAC-SHA256 of the payload. Nothing is persisted: validity is
    fully determined by the signature and the embedded expiry.
    """

    def __init__(self, secret_key: Optional[str] = None, base_url: Optional[str] = None):
        """
        Initialize SignedUrlService.

        Args:
            secret_key: Secret key for HMAC signing. Falls back to the
                STORAGE_SIGNING_SECRET then SECRET_KEY environment variables,
                and finally to a random per-process secret.
            base_url: Public base URL prepended to signed paths. Falls back to
                the DOWNLOAD_BASE_URL environment variable; relative URLs are
                produced when neither is set.
        """
        secret = secret_key or os.getenv("STORAGE_SIGNING_SECRET") or os.getenv("SECRET_KEY")
        if not secret:
            logger.warning(
                "No signing secret configured; access tokens will not survive a restart"
            )
            secret = self._generate_secret_key()
        self.secret_key = secret

        base = base_url if base_url is not None else os.getenv("DOWNLOAD_BASE_URL", "")
        self.base_url = base.rstrip("/")

    @staticmethod
    def _generate_secret_key(length: int = 32) -> str:
        """Generate a cryptographically secure secret key."""
        return secrets.token_hex(length)

    def _sign(self, payload: str) -> str:
        digest = hmac.new(
            self.secret_key.encode("utf-8"), payload.encode("ascii"), hashlib.sha256
        ).digest()
        return _b64encode(digest)

    def issue_token(
        self,
        storage_key: str,
        expires_in: int,
        content_type: Optional[str] = None,
        content_disposition: Optional[str] = None,
        now: Optional[float] = None,
    ) -> Tuple[str, datetime]:
        """
        Mint a signed token for one storage key.

        Args:
            storage_key: Key the token grants access to
            expires_in: Lifetime in seconds
            content_type: Optional content type to serve the object with
            content_disposition: Optional content disposition to serve with
            now: Optional epoch seconds override

        Returns:
            Tuple of (token, expires_at)
        """
        issued_at = time.time() if now is None else now
        expires_at = issued_at + int(expires_in)

        claims = {"k": storage_key, "exp": expires_at}
        if content_type:
            claims["ct"] = content_type
        if content_disposition:
            claims["cd"] = content_disposition

        payload = _b64encode(json.dumps(claims, separators=(",", ":"), sort_keys=True).encode("utf-8"))
        token = f"{payload}.{self._sign(payload)}"

        return token, datetime.fromtimestamp(expires_at, tz=timezone.utc)

    def verify_token(self, token: str, now: Optional[float] = None) -> AccessTokenClaims:
        """
        Verify signature and expiry of a token.

        Args:
            token: Token produced by issue_token()
            now: Optional epoch seconds override

        Returns:
            AccessTokenClaims embedded in the token

        Raises:
            AccessTokenError: If the token is malformed, tampered with or expired
        """
        if not token or not isinstance(token, str) or not token.isascii() or token.count(".") != 1:
            raise AccessTokenError(AccessTokenError.MALFORMED)

        payload, signature = token.split(".")
        # Use constant-time comparison to prevent timing attacks
        if not hmac.compare_digest(signature, self._sign(payload)):
            raise AccessTokenError(AccessTokenError.INVALID_SIGNATURE)

        try:
            claims = json.loads(_b64decode(payload))
            storage_key = claims["k"]
            expires_at = float(claims["exp"])
        except (binascii.Error, ValueError, KeyError, TypeError) as e:
            raise AccessTokenError(AccessTokenError.MALFORMED, original_error=e) from e

        current = time.time() if now is None else now
        if current >= expires_at:
            raise AccessTokenError(AccessTokenError.EXPIRED)

        return AccessTokenClaims(
            storage_key=storage_key,
            expires_at=datetime.fromtimestamp(expires_at, tz=timezone.utc),
            content_type=claims.get("ct"),
            content_disposition=claims.get("cd"),
        )

    def build_url(self, path_prefix: str, storage_key: str, token: str) -> str:
        """
        Build the public URL for a token-guarded object.

        Args:
            path_prefix: Serving prefix such as '/temp'
            storage_key: Key appended to the prefix
            token: Signed token added as query parameter

        Returns:
            Absolute URL when a base URL is configured, otherwise a relative path
        """
        prefix = "/" + path_prefix.strip("/")
        return f"{self.base_url}{prefix}/{quote(storage_key)}?token={quote(token)}"
