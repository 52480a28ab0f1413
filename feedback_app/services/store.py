from contextlib import contextmanager
from typing import Iterator, Optional

from flask import current_app
from sqlalchemy.orm import Session

from feedback_app.extensions import db


@contextmanager
def unit_of_work(session: Optional[Session] = None) -> Iterator[Session]:
    """
    One logical write (issue, submit, ...) = one transaction.
    Commits on a clean exit, rolls back on any exception and re-raises.
    The connection goes back to the pool when the app context tears down.
    """
    session = session or db.session
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        current_app.logger.debug("unit_of_work rolled back", exc_info=True)
        raise
