import base64
import hashlib
import hmac
from typing import Optional

from itsdangerous import BadSignature, TimestampSigner

TOKEN_SALT = "envato-server-auth"


def make_signer(secret: str) -> TimestampSigner:
    return TimestampSigner(secret, salt=TOKEN_SALT)


def sign_token(secret: str, user_id: int) -> str:
    return make_signer(secret).sign(str(user_id).encode()).decode()


def unsign_token(secret: str, token: str, max_age_seconds=86400 * 30) -> Optional[int]:
    try:
        raw = make_signer(secret).unsign(token, max_age=max_age_seconds).decode()
    except BadSignature:
        return None
    return int(raw) if raw.isdigit() else None


def bearer_token(header: str) -> str:
    scheme, _, token = (header or "").partition(" ")
    return token.strip() if scheme.lower() == "bearer" else ""


def verify_helpscout_signature(body_bytes: bytes, header_signature: str, secret: str) -> bool:
    """Help Scout signs dynamic-app requests with base64(HMAC-SHA1(secret, body))."""
    if not header_signature or not secret:
        return False
    digest = hmac.new(secret.encode(), msg=body_bytes, digestmod=hashlib.sha1).digest()
    expected = base64.b64encode(digest).decode()
    return hmac.compare_digest(expected, header_signature)
