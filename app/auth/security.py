from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import bcrypt
from jose import jwt

from app.core.config import settings
from app.core.enums import TokenAudience


def hash_password(plain_password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds) if rounds else bcrypt.gensalt()
    hashed = bcrypt.hashpw(plain_password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # In case the stored hash is invalid/corrupted
        return False


_AUDIENCE_EXPIRY_DAYS = {
    TokenAudience.ADMIN: lambda: settings.admin_token_expire_days,
    TokenAudience.INSTRUCTOR: lambda: settings.instructor_token_expire_days,
    TokenAudience.PORTAL: lambda: settings.portal_token_expire_days,
}


def create_access_token(
    *, subject: Dict, audience: TokenAudience, expires_days: Optional[int] = None
) -> str:
    """Sign a token for one audience. The audience travels in the `typ` claim."""
    if expires_days is None:
        expires_days = _AUDIENCE_EXPIRY_DAYS[audience]()

    to_encode = subject.copy()
    expire = datetime.now(timezone.utc) + timedelta(days=expires_days)
    to_encode.update({"typ": audience.value, "exp": expire})
    encoded_jwt = jwt.encode(
        to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm
    )
    return encoded_jwt


def decode_access_token(token: str) -> Dict:
    """Raises jose.JWTError for a bad signature or an expired token."""
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
    )
