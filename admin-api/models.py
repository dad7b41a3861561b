from datetime import datetime, timezone
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False)
    email = Column(String, unique=True, nullable=False)
    password_hash = Column(String, nullable=False)
    role = Column(String, default="admin") # admin, super_admin
    created_at = Column(DateTime(timezone=True), default=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)


class Creator(Base):
    __tablename__ = "creators"

    id = Column(Integer, primary_key=True, index=True)
    display_name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    email = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    status = Column(String, default="offline") # offline, live, or free text
    is_featured = Column(Boolean, default=False)
    is_paid_member = Column(Boolean, default=False)
    featured_priority = Column(Integer, default=0)
    platforms = Column(Text, default="[]") # JSON-encoded list
    viewers = Column(Integer, default=0)
    last_live_start = Column(DateTime(timezone=True), nullable=True)
    last_seen = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(Integer, primary_key=True, index=True)
    creator_id = Column(Integer, nullable=True, index=True) # creators.id, not enforced
    stripe_subscription_id = Column(String, unique=True)
    stripe_customer_id = Column(String, nullable=True)
    status = Column(String, nullable=True) # Stripe status: active, past_due, canceled, ...
    plan_type = Column(String, nullable=True)
    amount = Column(Integer, nullable=True) # minor currency units
    currency = Column(String, default="usd")
    period_start = Column(DateTime(timezone=True), nullable=True)
    period_end = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class AnalyticsEvent(Base):
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String, nullable=False)
    event_data = Column(Text, nullable=True) # JSON-encoded object
    creator_id = Column(Integer, nullable=True, index=True) # creators.id, not enforced
    timestamp = Column(DateTime(timezone=True), default=utcnow)


class SiteSetting(Base):
    __tablename__ = "site_settings"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
