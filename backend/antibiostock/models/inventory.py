"""
AntibioStock Backend: Inventory SQLAlchemy Models
==================================================

What:  ORM models for the four inventory tables in PostgreSQL.
How:   Inherit from SQLAlchemy's DeclarativeBase; Alembic reads these for migrations.
Who:   Used by the services for every query and by the test suite's create_all().

Table names and column names match the schema the frontend and existing
database already use (Spanish); Python attribute names are English.

    antibiogramas ──< antibiograma_antibiotico >── antibioticos
          │
          └──< salidas   (append-only outflow log)
"""

from datetime import datetime, timezone

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from antibiostock.database import Base


class Antibiotic(Base):
    """
    A stocked antibiotic.

    Mutated only by StockService (set/subtract) and OutflowService.
    quantity must never go below zero; services check under a row lock and
    the CHECK constraint backs that up at the database level.
    """

    __tablename__ = "antibioticos"

    code: Mapped[str] = mapped_column("codigo", String(50), primary_key=True)
    name: Mapped[str] = mapped_column("nombre", String(255), nullable=False)
    quantity: Mapped[int] = mapped_column(
        "cantidad",
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )
    threshold: Mapped[int] = mapped_column(
        "stock_minimo",
        Integer,
        nullable=False,
        default=0,
        server_default=text("0"),
    )

    __table_args__ = (
        CheckConstraint("cantidad >= 0", name="ck_antibioticos_cantidad_no_negativa"),
        CheckConstraint("stock_minimo >= 0", name="ck_antibioticos_stock_minimo_no_negativo"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.threshold

    def __repr__(self) -> str:
        return f"<Antibiotic(code='{self.code}', quantity={self.quantity}, threshold={self.threshold})>"


class Antibiogram(Base):
    """A named antibiogram panel. Created and edited outside this service."""

    __tablename__ = "antibiogramas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column("nombre", String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<Antibiogram(id={self.id}, name='{self.name}')>"


class AntibiogramAntibiotic(Base):
    """Many-to-many link row. The composite primary key makes duplicate links impossible."""

    __tablename__ = "antibiograma_antibiotico"

    antibiogram_id: Mapped[int] = mapped_column(
        "antibiograma_id",
        Integer,
        ForeignKey("antibiogramas.id", ondelete="CASCADE"),
        primary_key=True,
    )
    antibiotic_code: Mapped[str] = mapped_column(
        "antibiotico_codigo",
        String(50),
        ForeignKey("antibioticos.codigo", ondelete="CASCADE"),
        primary_key=True,
    )


class Outflow(Base):
    """
    One registered outflow (salida): every antibiotic of `antibiogram_id`
    was decremented by `units` in the same transaction that inserted this row.

    Never updated or deleted by the application; rows disappear only through
    the ON DELETE CASCADE when the antibiogram itself is removed.
    """

    __tablename__ = "salidas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )
    antibiogram_id: Mapped[int] = mapped_column(
        "antibiograma_id",
        Integer,
        ForeignKey("antibiogramas.id", ondelete="CASCADE"),
        nullable=False,
    )
    units: Mapped[int] = mapped_column("unidades", Integer, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<Outflow(id={self.id}, antibiogram_id={self.antibiogram_id}, "
            f"units={self.units}, created_at='{self.created_at}')>"
        )
