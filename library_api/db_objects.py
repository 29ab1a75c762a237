from sqlalchemy import event, inspect, text

from library_api.extensions import db
from library_api.models import book, loan, user  # noqa: F401  (registers tables for create_all)

ACTIVE_LOAN_INDEX = "ux_loans_active_user_book"

# one active loan per (user, book): unique over the rows whose returned_at is NULL
PARTIAL_INDEX_SQL = {
    "sqlite": f"""
        CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_LOAN_INDEX}
        ON loans (user_id, book_id) WHERE returned_at IS NULL
    """,
    "postgresql": f"""
        CREATE UNIQUE INDEX IF NOT EXISTS {ACTIVE_LOAN_INDEX}
        ON loans (user_id, book_id) WHERE returned_at IS NULL
    """,
    "mssql": f"""
        IF NOT EXISTS (SELECT 1 FROM sys.indexes WHERE name = N'{ACTIVE_LOAN_INDEX}')
        BEGIN
            CREATE UNIQUE NONCLUSTERED INDEX {ACTIVE_LOAN_INDEX}
            ON dbo.loans (user_id, book_id) WHERE returned_at IS NULL
        END
    """,
}


def _sqlite_foreign_keys(dbapi_conn, _record):
    # SQLite ignores ON DELETE SET NULL unless this is on for the connection
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def ensure_db_objects(app):
    """
    Turns on SQLite foreign keys, creates missing tables (when
    AUTO_CREATE_TABLES is on) and the partial unique index behind the
    one-active-loan rule. Safe to run on every start.
    """
    with app.app_context():
        engine = db.engine
        # before the first connection is opened, so every pooled connection gets it
        if engine.dialect.name == "sqlite" and not event.contains(engine, "connect", _sqlite_foreign_keys):
            event.listen(engine, "connect", _sqlite_foreign_keys)

        if app.config.get("AUTO_CREATE_TABLES"):
            db.create_all()

        if not inspect(engine).has_table("loans"):
            app.logger.info("[db] loans table not created yet; skipping index setup")
            return

        sql = PARTIAL_INDEX_SQL.get(engine.dialect.name)
        if sql is None:
            app.logger.warning(
                f"[db] no partial index support for '{engine.dialect.name}'; "
                "active-loan uniqueness relies on the borrow transaction alone"
            )
            return

        with engine.begin() as conn:
            conn.execute(text(sql))
        app.logger.info(f"[db] ensured {ACTIVE_LOAN_INDEX} on {engine.dialect.name}")
