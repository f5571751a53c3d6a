import logging

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class UnitOfWork:
    """Atomic write block over a session.

    Commits when the block exits cleanly; rolls back and re-raises otherwise.
    Statements inside the block must not commit on their own.

        with UnitOfWork(db):
            db.add(order)
            ...
    """

    def __init__(self, session: Session):
        self.session = session

    def __enter__(self) -> Session:
        return self.session

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None:
            try:
                self.session.commit()
            except Exception:
                logger.exception("Commit failed, rolling back")
                self.session.rollback()
                raise
        else:
            self.session.rollback()
        return False
