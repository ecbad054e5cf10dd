import logging
from typing import Generator, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker, Session, declarative_base
from sqlalchemy.exc import IntegrityError

from socialmedia.config import settings

logger = logging.getLogger(__name__)

# check_same_thread=False is required for SQLite when sessions are used from
# FastAPI's threadpool
connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(
    settings.DATABASE_URL,
    connect_args=connect_args,
    echo=False,
)

# Create SessionLocal class for creating database sessions
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for SQLAlchemy models
Base = declarative_base()

REQUIRED_TABLES = ("account", "message")


class DuplicateKeyError(Exception):
    """Raised when the database rejects a write on a unique constraint."""


def init_db() -> None:
    """
    Initialize the database by creating all tables.
    Called during application startup.
    """
    logger.debug(f"Initializing database with URL: {settings.DATABASE_URL}")
    try:
        # Import models to register them with Base.metadata
        from socialmedia.models import Account, Message  # noqa: F401

        logger.debug("Creating database tables...")
        Base.metadata.create_all(bind=engine)
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {e}")
        raise


def get_db() -> Generator[Session, None, None]:
    """
    Dependency to get database session.
    Yields a session and ensures it's closed after use.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def check_db_health() -> bool:
    """
    Check if the database is reachable and schema is applied.

    Returns:
        True if DB is healthy and schema exists, False otherwise.
    """
    logger.debug("Checking database health...")
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
            logger.debug("Database connectivity OK")

        inspector = inspect(engine)
        for table in REQUIRED_TABLES:
            if not inspector.has_table(table):
                logger.error(f"Database schema not applied: '{table}' table not found")
                return False
        logger.debug("Database health check passed")
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


def _save(db: Session, record):
    """
    Insert or update a record and refresh it from the database.

    A record without a primary key is inserted; a record loaded from this
    session is updated in place. The refreshed record carries its id.
    """
    try:
        db.add(record)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(record)
    return record


# =============================================================================
# Account Repository
# =============================================================================

class AccountRepository:
    """Account lookups and writes over a single database session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str):
        from socialmedia.models import Account

        logger.debug(f"Looking up account by username: {username}")
        return self.db.query(Account).filter(Account.username == username).first()

    def find_by_username_and_password(self, username: str, password: str):
        from socialmedia.models import Account

        logger.debug(f"Looking up account by credentials for username: {username}")
        return (
            self.db.query(Account)
            .filter(Account.username == username, Account.password == password)
            .first()
        )

    def exists_by_id(self, account_id: Optional[int]) -> bool:
        from socialmedia.models import Account

        if account_id is None:
            return False
        query = self.db.query(Account.account_id).filter(Account.account_id == account_id)
        return self.db.query(query.exists()).scalar()

    def save(self, account):
        """
        Persist an account.

        Raises:
            DuplicateKeyError: if another account already holds the username
        """
        try:
            return _save(self.db, account)
        except IntegrityError as e:
            logger.info(f"Account write rejected by unique constraint: username={account.username}")
            raise DuplicateKeyError(str(e.orig)) from e


# =============================================================================
# Message Repository
# =============================================================================

class MessageRepository:
    """Message lookups and writes over a single database session."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, message_id: int):
        from socialmedia.models import Message

        logger.debug(f"Looking up message by ID: {message_id}")
        result = self.db.get(Message, message_id)
        logger.debug(f"Message lookup result: {'found' if result else 'not found'}")
        return result

    def save(self, message):
        return _save(self.db, message)

    def delete_by_id(self, message_id: int) -> int:
        """Delete a message in one statement and return the number of rows removed."""
        from socialmedia.models import Message

        try:
            deleted = self.db.query(Message).filter(Message.message_id == message_id).delete()
            self.db.commit()
            return deleted
        except Exception:
            self.db.rollback()
            raise

    def find_all(self) -> list:
        from socialmedia.models import Message

        return self.db.query(Message).order_by(Message.message_id.asc()).all()

    def find_by_posted_by(self, account_id: int) -> list:
        from socialmedia.models import Message

        return (
            self.db.query(Message)
            .filter(Message.posted_by == account_id)
            .order_by(Message.message_id.asc())
            .all()
        )
