from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text
from .db import Base


class StoredValue(Base):
	__tablename__ = "stored_values"
	# One row per storage key (curriculum, participationRecords, ...); value is a JSON string
	key = Column(String(64), primary_key=True)
	value = Column(Text, nullable=True)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AdminSession(Base):
	__tablename__ = "admin_sessions"
	session_id = Column(String(64), primary_key=True, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)
