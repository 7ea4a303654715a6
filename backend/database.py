# booking-backend/database.py

from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import DATABASE_URL

# Execution option asking a SQLite connection to open its transaction with BEGIN IMMEDIATE
SQLITE_BEGIN_OPTION = "sqlite_begin"


def build_engine(url: str):
    """
    Create the SQLAlchemy engine.

    On SQLite the pysqlite driver's own transaction handling is switched off so
    that we emit BEGIN ourselves; a write transaction can then take the database
    write lock up front (BEGIN IMMEDIATE) before it reads anything.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    # connect_args is needed for SQLite to allow multiple threads to interact with the same connection
    engine = create_engine(url, connect_args={"check_same_thread": False, "timeout": 15})

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, _):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        mode = conn.get_execution_options().get(SQLITE_BEGIN_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine


def begin_serialized(db: Session):
    """
    Start the session's transaction so that no other writer can interleave
    with it until commit or rollback.

    A read-only transaction the session still holds from earlier lookups is
    committed first; the session must not carry unflushed changes.
    """
    if db.in_transaction():
        db.commit()

    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        db.connection(execution_options={SQLITE_BEGIN_OPTION: "IMMEDIATE"})
    elif dialect == "postgresql":
        # Blocks other writers of the table, leaves plain readers alone.
        db.execute(text("LOCK TABLE reservations IN SHARE ROW EXCLUSIVE MODE"))
    else:
        db.connection(execution_options={"isolation_level": "SERIALIZABLE"})


# Create the SQLAlchemy engine
engine = build_engine(DATABASE_URL)

# Each instance of SessionLocal will be a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Base class for our SQLAlchemy models
Base = declarative_base()


# Dependency to get a database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
