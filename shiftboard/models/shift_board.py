from sqlalchemy import JSON, Boolean, Column, Date, DateTime, ForeignKey, Integer, UniqueConstraint, func

from . import Base


class ShiftBoard(Base):
    __tablename__ = "shift_boards"
    __table_args__ = (
        UniqueConstraint("workplace_id", "week_start_date", name="uq_shift_board_week"),
    )

    id = Column(Integer, primary_key=True)
    workplace_id = Column(Integer, ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False)
    week_start_date = Column(Date, nullable=False)
    is_published = Column(Boolean, nullable=False, default=False, server_default="false")
    preferences = Column(JSON, nullable=True)
    requests_window_start = Column(DateTime(timezone=True), nullable=True)
    requests_window_end = Column(DateTime(timezone=True), nullable=True)
    content = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
