"""AppUser model - operators who ring up sales."""
from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.sql import func
from app.database import Base, BigIntId


class AppUser(Base):
    """AppUser model. Credentials live with the external auth gate."""

    __tablename__ = 'app_user'

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(200), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self):
        return f"<AppUser(id={self.id}, email='{self.email}')>"
