from sqlalchemy import Column, Date, DateTime, Enum, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from ..constants import SHIFT_PARTS
from . import Base

shift_part_enum = Enum(*SHIFT_PARTS, name="shift_part")


class Shift(Base):
    __tablename__ = "shifts"
    __table_args__ = (
        UniqueConstraint("workplace_id", "shift_date", "shift_part", name="uq_shift_slot"),
    )

    id = Column(Integer, primary_key=True)
    workplace_id = Column(Integer, ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False, index=True)
    shift_date = Column(Date, nullable=False)
    shift_part = Column(shift_part_enum, nullable=False)
    created_at = Column(DateTime, server_default=func.now())

    assignments = relationship(
        "ShiftAssignment",
        back_populates="shift",
        cascade="all, delete-orphan",
        order_by="ShiftAssignment.id",
    )


class ShiftAssignment(Base):
    __tablename__ = "shift_assignments"
    __table_args__ = (
        UniqueConstraint("shift_id", "account_id", name="uq_shift_assignment_account"),
    )

    id = Column(Integer, primary_key=True)
    shift_id = Column(Integer, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False, index=True)
    account_id = Column(String(64), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False, index=True)
    comment = Column(Text, nullable=True)
    assigned_at = Column(DateTime, server_default=func.now())

    shift = relationship("Shift", back_populates="assignments")
    account = relationship("Account")
