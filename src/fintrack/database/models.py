"""SQLAlchemy models for fintrack database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Table,
    UniqueConstraint,
    Index,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


tag_transaction = Table(
    "tag_transaction",
    Base.metadata,
    Column("tag_id", Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
    Column(
        "transaction_id",
        Integer,
        ForeignKey("transactions.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class User(Base):
    """User model."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_account_user_name"),)


class CsvSchema(Base):
    """CSV column mapping model. Column references are stored as entered."""

    __tablename__ = "csv_schemas"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    transaction_data_start = Column(Integer, nullable=False, default=1)
    date_column = Column(String(8), nullable=False)
    balance_column = Column(String(8), nullable=False)
    amount_column = Column(String(8), nullable=True)
    paid_in_column = Column(String(8), nullable=True)
    paid_out_column = Column(String(8), nullable=True)
    description_column = Column(String(8), nullable=True)
    date_format = Column(String(50), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_csv_schema_user_name"),)

    imports = relationship("Import", back_populates="csv_schema")


class Import(Base):
    """Import run model."""

    __tablename__ = "imports"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    csv_schema_id = Column(Integer, ForeignKey("csv_schemas.id"), nullable=False)
    filename = Column(String(255), nullable=False)
    status = Column(String(16), nullable=False, default="pending")
    total_rows = Column(Integer, nullable=True)
    processed_rows = Column(Integer, nullable=False, default=0)
    imported_rows = Column(Integer, nullable=False, default=0)
    duplicate_rows = Column(Integer, nullable=False, default=0)
    error_message = Column(Text, nullable=True)
    started_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (Index("ix_imports_user_status", "user_id", "status"),)

    # Relationships
    csv_schema = relationship("CsvSchema", back_populates="imports")
    transactions = relationship("Transaction", back_populates="import_", cascade="all, delete-orphan")


class Tag(Base):
    """Tag model."""

    __tablename__ = "tags"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    name = Column(String(255), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_tag_user_name"),)

    criterias = relationship("TagCriteria", back_populates="tag", cascade="all, delete-orphan")


class TagCriteria(Base):
    """Tag matching rule model."""

    __tablename__ = "tag_criterias"

    id = Column(Integer, primary_key=True)
    tag_id = Column(Integer, ForeignKey("tags.id"), nullable=False)
    description_match = Column(String, nullable=True)
    match_type = Column(String(16), nullable=False, default="contains")
    balance_match = Column(Integer, nullable=True)
    date_match = Column(Date, nullable=True)

    tag = relationship("Tag", back_populates="criterias")


class Transaction(Base):
    """Transaction model. Money columns hold integer minor units."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    import_id = Column(Integer, ForeignKey("imports.id"), nullable=False)
    date = Column(Date, nullable=False)
    balance = Column(Integer, nullable=True)
    paid_in = Column(Integer, nullable=True)
    paid_out = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    reference = Column(Text, nullable=True)
    unique_hash = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # At-most-once import guarantee
    __table_args__ = (
        UniqueConstraint("user_id", "unique_hash", name="uq_transaction_user_hash"),
        Index("ix_transactions_user_date", "user_id", "date"),
        Index("ix_transactions_account_date", "account_id", "date"),
    )

    # Relationships
    import_ = relationship("Import", back_populates="transactions")
    tags = relationship("Tag", secondary=tag_transaction)


def _enable_sqlite_savepoints(engine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT works with the pysqlite driver."""

    @event.listens_for(engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        _enable_sqlite_savepoints(engine)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
