from datetime import datetime, timedelta, timezone
from typing import Optional, Any, Dict

from jose import jwt

from mlm_ledger.core.config import SECRET_KEY, ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES

def create_access_token(subject: Any, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a bearer token for a user id. Production tokens come from the auth
    service; this is used by tests and admin tooling.
    """
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode: Dict[str, Any] = {"exp": expire, "sub": str(subject)}
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

def decode_access_token(token: str) -> Dict[str, Any]:
    """Raises jose.JWTError for expired or tampered tokens."""
    return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
