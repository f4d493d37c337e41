"""SQLAlchemy models for gstbooks database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Category(Base):
    """Expense category model."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    expenses = relationship("Expense", back_populates="category")


class Vendor(Base):
    """Vendor model (expense counterparty)."""

    __tablename__ = "vendors"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    is_international = Column(Boolean, default=False, nullable=False)
    default_category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    expenses = relationship("Expense", back_populates="vendor")


class Client(Base):
    """Client model (income counterparty)."""

    __tablename__ = "clients"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    incomes = relationship("Income", back_populates="client")


class ImportJob(Base):
    """Import run history model."""

    __tablename__ = "import_jobs"

    id = Column(Integer, primary_key=True)
    run_id = Column(String, unique=True, nullable=False)
    kind = Column(String, nullable=False)
    source = Column(String, nullable=True)
    filename = Column(String, nullable=True)
    status = Column(String, nullable=False, default="processing")
    total_rows = Column(Integer, nullable=False, default=0)
    imported_count = Column(Integer, nullable=False, default=0)
    failed_count = Column(Integer, nullable=False, default=0)
    duplicate_count = Column(Integer, nullable=False, default=0)
    total_amount_cents = Column(Integer, nullable=False, default=0)
    total_gst_cents = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)
    completed_at = Column(DateTime, nullable=True)


class Expense(Base):
    """Expense model. Money columns are integer cents."""

    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    gst_cents = Column(Integer, nullable=False, default=0)
    biz_percent = Column(Integer, nullable=False, default=100)
    vendor_id = Column(Integer, ForeignKey("vendors.id"), nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    description = Column(String, nullable=True)
    import_job_id = Column(Integer, ForeignKey("import_jobs.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    vendor = relationship("Vendor", back_populates="expenses")
    category = relationship("Category", back_populates="expenses")


class Income(Base):
    """Income model. Money columns are integer cents."""

    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id"), nullable=False)
    invoice_number = Column(String, nullable=True)
    description = Column(String, nullable=True)
    subtotal_cents = Column(Integer, nullable=False)
    gst_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    is_paid = Column(Boolean, default=False, nullable=False)
    import_job_id = Column(Integer, ForeignKey("import_jobs.id"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    client = relationship("Client", back_populates="incomes")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
