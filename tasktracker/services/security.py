"""Password digests and signed access tokens."""

import base64
import hashlib
import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import bcrypt
from jose import JWTError, jwt

from ..config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    PASSWORD_HASH_SCHEME,
    SECRET_KEY,
    TOKEN_ALGORITHM,
    TOKEN_ISSUER,
)
from ..errors import AuthenticationError
from ..models import User

SHA256 = "sha256"
BCRYPT = "bcrypt"
SCHEMES = (SHA256, BCRYPT)

ROLE_USER = "user"

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def sha256_digest(plaintext: str) -> str:
    """Base64 of SHA-256 over the UTF-8 bytes. Unsalted and deterministic."""
    digest = hashlib.sha256(plaintext.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")


def is_bcrypt_digest(digest: str) -> bool:
    return digest.startswith(_BCRYPT_PREFIXES)


class CredentialHasher:
    """One-way password transform.

    ``sha256`` reproduces the legacy digests: two users with the same
    password share a digest. ``bcrypt`` salts every digest. ``verify``
    accepts both formats whatever the active scheme, which is what lets
    stored legacy digests migrate lazily on login.
    """

    def __init__(self, scheme: str = PASSWORD_HASH_SCHEME):
        if scheme not in SCHEMES:
            raise ValueError(f"Unknown password hash scheme {scheme!r}, expected one of {SCHEMES}")
        self.scheme = scheme

    def hash(self, plaintext: str) -> str:
        if self.scheme == BCRYPT:
            password_bytes = plaintext.encode("utf-8")[:72]  # bcrypt limit
            return bcrypt.hashpw(password_bytes, bcrypt.gensalt()).decode("utf-8")
        return sha256_digest(plaintext)

    def verify(self, plaintext: str, digest: Optional[str]) -> bool:
        if not digest:
            return False
        if is_bcrypt_digest(digest):
            return bcrypt.checkpw(plaintext.encode("utf-8")[:72], digest.encode("utf-8"))
        return hmac.compare_digest(sha256_digest(plaintext).encode("ascii"), digest.encode("utf-8"))

    def needs_rehash(self, digest: str) -> bool:
        return self.scheme == BCRYPT and not is_bcrypt_digest(digest)


class TokenIssuer:
    """Mints and checks signed JWTs asserting a user's identity.

    Stateless: everything in the token comes from the user record passed in.
    """

    def __init__(
        self,
        secret_key: str = SECRET_KEY,
        algorithm: str = TOKEN_ALGORITHM,
        issuer: str = TOKEN_ISSUER,
        expires_delta: Optional[timedelta] = None,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.expires_delta = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    def claims_for(self, user: User, now: Optional[datetime] = None) -> Dict[str, Any]:
        issued_at = now or datetime.now(timezone.utc)
        return {
            "iss": self.issuer,
            "sub": user.username,
            "upn": user.email,
            "userId": user.id,
            "groups": [ROLE_USER],
            "iat": issued_at,
            "exp": issued_at + self.expires_delta,
        }

    def issue(self, user: User, now: Optional[datetime] = None) -> str:
        """Create a signed access token for ``user``."""
        return jwt.encode(self.claims_for(user, now), self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify signature, expiry and issuer; return the claims."""
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
            )
        except JWTError as e:
            raise AuthenticationError("Could not validate credentials") from e
        if not payload.get("sub"):
            raise AuthenticationError("Could not validate credentials")
        return payload
