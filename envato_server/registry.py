import logging
import threading
import weakref
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .log import mask_code
from .models import PurchaseCode, User
from .results import ErrorKind, Result

logger = logging.getLogger(__name__)


class DuplicateCodeError(Exception):
    def __init__(self, code: str):
        super().__init__(f"purchase code already registered: {mask_code(code)}")
        self.code = code


class PurchaseCodeStore:
    """Registry of purchase codes bound to accounts, on top of a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_code(self, code: str) -> Optional[PurchaseCode]:
        return self.db.execute(select(PurchaseCode).where(PurchaseCode.code == code)).scalars().first()

    def insert(self, owner, code: str) -> PurchaseCode:
        """Bind ``code`` to ``owner`` (a user id or an unsaved :class:`User`) and commit.

        Raises :class:`DuplicateCodeError` when the code is already taken.
        """
        entry = PurchaseCode(code=code)
        if isinstance(owner, User):
            entry.owner = owner
        else:
            entry.user_id = owner
        self.db.add(entry)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            # the same commit may carry a new user row; only a taken code is ours to report
            if self.find_by_code(code) is not None:
                raise DuplicateCodeError(code)
            raise
        return entry

    def codes_for(self, owner_id: int) -> List[str]:
        rows = self.db.execute(
            select(PurchaseCode.code).where(PurchaseCode.user_id == owner_id).order_by(PurchaseCode.id)
        )
        return list(rows.scalars())


class KeyedLocks:
    """One lock per key; locks are dropped once nobody holds a reference."""

    def __init__(self):
        self._mutex = threading.Lock()
        self._locks = weakref.WeakValueDictionary()

    @contextmanager
    def hold(self, key):
        with self._mutex:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
        with lock:
            yield


class RegistryGuard:
    """Enforces one purchase code per account before handing the code to the verifier."""

    def __init__(self, verifier, locks: Optional[KeyedLocks] = None):
        self.verifier = verifier
        self.locks = locks or KeyedLocks()

    def attach(self, store: PurchaseCodeStore, owner, code: str) -> Result:
        if not code or not code.strip():
            return Result.failure(ErrorKind.EMPTY_CODE)

        with self.locks.hold(code):
            if store.find_by_code(code) is not None:
                logger.info("attach %s: already registered", mask_code(code))
                return Result.failure(ErrorKind.CODE_ALREADY_REGISTERED)

            verified = self.verifier.verify_purchase(code)
            if not verified.ok:
                return verified

            try:
                store.insert(owner, code)
            except DuplicateCodeError:
                logger.info("attach %s: lost insert race", mask_code(code))
                return Result.failure(ErrorKind.CODE_ALREADY_REGISTERED)

        logger.info("attach %s: registered", mask_code(code))
        return Result.success()
