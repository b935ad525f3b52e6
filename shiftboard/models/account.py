from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from . import Base


class Account(Base):
    __tablename__ = "accounts"

    # Same value as the identity provider's user id.
    id = Column(String(64), primary_key=True)
    email = Column(String, nullable=False, index=True)
    username = Column(String(120), nullable=False)
    full_name = Column(String, nullable=False)
    is_manager = Column(Boolean, nullable=False, default=False, server_default="false")
    is_active = Column(Boolean, nullable=False, default=True, server_default="true")
    is_approved = Column(Boolean, nullable=False, default=False, server_default="false")
    workplace_id = Column(Integer, ForeignKey("workplaces.id", use_alter=True, ondelete="SET NULL"), nullable=True)
    external_ref = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, onupdate=func.now())

    @property
    def role(self) -> str:
        return "manager" if self.is_manager else "employee"
