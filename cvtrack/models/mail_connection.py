from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.sql import func
from cvtrack.database import Base

class MailConnection(Base):
    """
    A connected inbound mailbox.
    The OAuth flow and token refresh live with the identity provider; we only
    keep the current access token and sync bookkeeping.
    """
    __tablename__ = "mail_connections"

    id = Column(Integer, primary_key=True, index=True)
    team_id = Column(Integer, nullable=False, index=True)
    user_id = Column(Integer, nullable=False)
    email = Column(String(255), nullable=False)
    access_token = Column(Text, nullable=True)  # Fernet ciphertext, see core.security
    last_sync_at = Column(DateTime(timezone=True), nullable=True)
    sync_from_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
