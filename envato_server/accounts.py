import logging
import re
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import User
from .registry import PurchaseCodeStore, RegistryGuard
from .results import ErrorKind, Result

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(r"^[^@\s<>]+@[^@\s<>]+\.[^@\s<>]+$")


def is_email(value: Optional[str]) -> bool:
    return bool(value) and len(value) <= 254 and bool(_EMAIL_RE.match(value))


def _find_user(db: Session, *, username: str = None, email: str = None) -> Optional[User]:
    stmt = select(User)
    if username is not None:
        stmt = stmt.where(User.username == username)
    if email is not None:
        stmt = stmt.where(User.email == email)
    return db.execute(stmt).scalars().first()


def _taken(db: Session, username: str, email: str):
    errors = []
    if _find_user(db, username=username):
        errors.append(ErrorKind.USERNAME_TAKEN)
    if _find_user(db, email=email):
        errors.append(ErrorKind.EMAIL_TAKEN)
    return errors


def register(db: Session, guard: RegistryGuard, username: str, email: str, password: str,
             code: str, nickname: Optional[str] = None) -> Result:
    """Create an account that owns ``code``; the account is only saved if the code is accepted."""
    username = (username or "").strip()
    email = (email or "").strip().lower()

    errors = []
    if not username:
        errors.append(ErrorKind.MISSING_USERNAME)
    if not is_email(email):
        errors.append(ErrorKind.INVALID_EMAIL)
    if not password:
        errors.append(ErrorKind.MISSING_PASSWORD)
    if errors:
        return Result.failure(*errors)

    taken = _taken(db, username, email)
    if taken:
        return Result.failure(*taken)

    user = User(username=username, email=email, nickname=(nickname or "").strip() or None)
    user.set_password(password)

    try:
        attached = guard.attach(PurchaseCodeStore(db), user, code)
    except IntegrityError:
        # someone registered the same username/email while the code was being verified
        taken = _taken(db, username, email)
        return Result.failure(*(taken or [ErrorKind.USERNAME_TAKEN]))
    if not attached.ok:
        return attached

    logger.info("registered user %s (id=%s)", user.username, user.id)
    return Result.success(user)


def authenticate(db: Session, username: str, password: str) -> Result:
    user = _find_user(db, username=(username or "").strip())
    if user is None or not password or not user.check_password(password):
        return Result.failure(ErrorKind.BAD_CREDENTIALS)
    return Result.success(user)


def add_purchase_code(db: Session, guard: RegistryGuard, user: User, code: str) -> Result:
    return guard.attach(PurchaseCodeStore(db), user.id, code)


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def users_by_email(db: Session, emails) -> list:
    emails = [e.strip().lower() for e in emails or [] if isinstance(e, str) and e.strip()]
    if not emails:
        return []
    return list(db.execute(select(User).where(User.email.in_(emails)).order_by(User.id)).scalars())
