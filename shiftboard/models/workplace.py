from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, func

from . import Base


class Workplace(Base):
    __tablename__ = "workplaces"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=True)
    business_name = Column(String, nullable=False, unique=True, index=True)
    manager_id = Column(String(64), ForeignKey("accounts.id"), nullable=False)
    created_at = Column(DateTime, server_default=func.now())


class Invite(Base):
    __tablename__ = "invites"

    id = Column(Integer, primary_key=True)
    code = Column(String(64), nullable=False, unique=True)
    is_used = Column(Boolean, nullable=False, default=False, server_default="false")
    created_at = Column(DateTime, server_default=func.now())
