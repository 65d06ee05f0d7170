from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from domain.exceptions import ConflictError

@contextmanager
def integrity_guard(session: Session, action: str):
    """制約違反 (一意制約, 外部キー) を ConflictError に変換し、セッションを巻き戻す"""
    try:
        yield
    except IntegrityError as e:
        session.rollback()
        raise ConflictError(f"Failed to {action}: {e.orig}") from e
