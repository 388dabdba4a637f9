# accesszen/core/db.py

from sqlalchemy import Column, DateTime, String, create_engine, func
from sqlalchemy.orm import declarative_base, declared_attr, sessionmaker

from accesszen.core.config import settings
from accesszen.utils.logger import get_logger

# --- Configure logging ---
logger = get_logger(__name__)

# --- Create database engine ---
_connect_args = {"check_same_thread": False} if settings.db_url.startswith("sqlite") else {}
engine = create_engine(settings.db_url, connect_args=_connect_args)

# --- Create sessionmaker ---
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# --- Create declarative base ---
Base = declarative_base()


# --- Mixins ---

class AuditMixin:
    """Mixin for auditing fields."""

    @declared_attr
    def created_by(cls):
        """
        Column for the identity that created this record
        """
        return Column(String(128), nullable=True, comment="Identity that created this record")

    @declared_attr
    def modified_by(cls):
        """
        Column for the identity that last modified this record
        """
        return Column(String(128), nullable=True, comment="Identity that last modified this record")

    @declared_attr
    def created_on(cls):
        """
        Column for the timestamp when this record was created
        """
        return Column(
            DateTime(timezone=True),
            server_default=func.now(),
            comment="Timestamp when this record was created",
        )

    @declared_attr
    def updated_on(cls):
        """
        Column for the timestamp when this record was last updated
        """
        return Column(
            DateTime(timezone=True),
            onupdate=func.now(),
            server_default=func.now(),
            comment="Timestamp when this record was last updated",
        )


def get_db():
    """
    Method for obtaining database session object
    """
    db = SessionLocal()
    try:
        yield db
        logger.info("Committing DB transaction")
        db.commit()
    except Exception as e:
        db.rollback()
        logger.error("Error in DB transaction", error_message=str(e))
        raise
    finally:
        db.close()


def init_db() -> None:
    """
    Create all tables registered on the declarative base
    """
    # Import models so they register with the metadata
    from accesszen.company import models as _company_models  # noqa: F401
    from accesszen.employees import models as _employee_models  # noqa: F401
    from accesszen.estates import models as _estate_models  # noqa: F401
    from accesszen.projects import models as _project_models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created", url=str(engine.url))
