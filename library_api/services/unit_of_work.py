import time

from flask import current_app
from sqlalchemy.exc import OperationalError

from library_api.errors import LibraryError, TransientStorageError
from library_api.extensions import db


def run_in_transaction(work, retry_on=(OperationalError,), label="txn"):
    """
    Runs ``work()`` inside one database transaction and commits it.

    - LibraryError raised by ``work`` rolls everything back and propagates as is.
    - Exceptions listed in ``retry_on`` (lock timeouts, deadlocks, unique index
      races) roll back and run ``work`` again, up to TXN_MAX_ATTEMPTS times.
      When the attempts run out the caller gets TransientStorageError.
    - Anything else rolls back and propagates.

    ``work`` must be safe to call again from scratch: it re-reads everything it
    needs on each attempt.
    """
    max_attempts = max(1, int(current_app.config.get("TXN_MAX_ATTEMPTS", 3)))
    backoff = float(current_app.config.get("TXN_RETRY_BACKOFF", 0.05))

    attempt = 0
    while True:
        attempt += 1
        try:
            result = work()
            db.session.commit()
            return result
        except LibraryError:
            db.session.rollback()
            raise
        except retry_on as ex:
            db.session.rollback()
            if attempt >= max_attempts:
                current_app.logger.error(
                    f"[txn] {label} gave up after {attempt} attempts: {ex.__class__.__name__}"
                )
                raise TransientStorageError() from ex
            current_app.logger.warning(
                f"[txn] {label} conflict on attempt {attempt}/{max_attempts}, retrying: {ex.__class__.__name__}"
            )
            if backoff:
                time.sleep(backoff * attempt)
        except Exception:
            db.session.rollback()
            raise
