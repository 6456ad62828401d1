from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session, SessionTransactionOrigin


@contextmanager
def smart_transaction(session: Session) -> Iterator:
    """
    Context manager that runs a unit of work in a transaction on the given Session.
      - No transaction active: begin one, commit on exit.
      - Transaction autobegun by earlier reads: adopt it, commit on exit.
      - Transaction opened by a caller (session.begin()): join it and only
        flush; the caller commits or rolls back.
    Errors roll back whatever this context owns.
    Usage:
        with smart_transaction(db):
            ... DB work ...
    """
    txn = session.get_transaction()
    if txn is None:
        with session.begin():
            yield
    elif txn.origin is SessionTransactionOrigin.AUTOBEGIN:
        try:
            yield
            session.commit()
        except Exception:
            session.rollback()
            raise
    else:
        yield
        session.flush()
