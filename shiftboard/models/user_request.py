from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.orm import relationship

from . import Base


class UserRequest(Base):
    __tablename__ = "user_requests"
    __table_args__ = (
        UniqueConstraint("account_id", "workplace_id", name="uq_user_request_account_workplace"),
    )

    id = Column(Integer, primary_key=True)
    account_id = Column(String(64), ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False)
    workplace_id = Column(Integer, ForeignKey("workplaces.id", ondelete="CASCADE"), nullable=False)
    requests = Column(Text, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    account = relationship("Account")
