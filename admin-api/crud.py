import json
import logging
from datetime import timedelta
from typing import Any, Dict, Iterable, List, Optional
from sqlalchemy import case, func, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from errors import NotFound
from models import AdminUser, AnalyticsEvent, Creator, SiteSetting, Subscription, utcnow
from schemas import (
    BulkStatusItem,
    CreatorCreate,
    CreatorPatch,
    StatusUpdate,
    serialize_platforms,
)
from security import hash_password

logger = logging.getLogger(__name__)

DEFAULT_SITE_SETTINGS = {
    "site_title": "Psycheverse Admin",
    "featured_slots": "4",
    "subscription_price": "1999",  # cents
    "auto_approve_free": "false",
    "max_free_listings": "50",
}

RECENT_ACTIVITY_WINDOW = timedelta(days=7)


# --- Admin users ---

def get_admin_by_login(db: Session, username_or_email: str) -> Optional[AdminUser]:
    return db.query(AdminUser).filter(
        or_(AdminUser.username == username_or_email, AdminUser.email == username_or_email)
    ).first()

def create_admin(db: Session, username: str, email: str, password: str, role: str = "admin") -> AdminUser:
    admin = AdminUser(username=username, email=email, password_hash=hash_password(password), role=role)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin

def touch_last_login(db: Session, admin: AdminUser) -> None:
    """Best-effort: a failure here never blocks the login."""
    try:
        admin.last_login = utcnow()
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Could not record last_login for admin {admin.id}", exc_info=True)


# --- Creators ---

def list_creators(db: Session, status: str = None, featured: Optional[bool] = None,
                  search: str = None, limit: int = 50, offset: int = 0) -> List[Creator]:
    query = db.query(Creator)

    if status:
        query = query.filter(Creator.status == status)
    if featured is not None:
        query = query.filter(Creator.is_featured == featured)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Creator.display_name.ilike(pattern), Creator.description.ilike(pattern)))

    return (
        query.order_by(
            Creator.is_featured.desc(),
            Creator.featured_priority.desc(),
            Creator.last_seen.desc(),
        )
        .limit(limit)
        .offset(offset)
        .all()
    )

def get_creator(db: Session, creator_id: int) -> Creator:
    creator = db.get(Creator, creator_id)
    if creator is None:
        raise NotFound("Creator not found")
    return creator

def create_creator(db: Session, fields: CreatorCreate, avatar_url: str = None) -> Creator:
    creator = Creator(
        display_name=fields.display_name,
        description=fields.description,
        email=fields.email,
        avatar_url=avatar_url,
        platforms=serialize_platforms(fields.platforms),
        is_featured=fields.is_featured,
        is_paid_member=fields.is_paid_member,
        featured_priority=fields.featured_priority,
    )
    db.add(creator)
    db.commit()
    db.refresh(creator)
    return creator

def apply_patch(instance: Any, patch: Dict[str, Any]) -> None:
    for field, value in patch.items():
        setattr(instance, field, value)

def update_creator(db: Session, creator_id: int, patch: CreatorPatch) -> Creator:
    creator = get_creator(db, creator_id)

    changes = patch.model_dump(exclude_unset=True)
    if "platforms" in changes:
        changes["platforms"] = serialize_platforms(changes["platforms"])
    changes["updated_at"] = utcnow()

    apply_patch(creator, changes)
    db.commit()
    db.refresh(creator)
    return creator

def delete_creator(db: Session, creator_id: int) -> None:
    # Subscriptions and analytics rows for this creator are left in place
    creator = get_creator(db, creator_id)
    db.delete(creator)
    db.commit()


# --- Live status ---

def set_creator_status(db: Session, creator_id: int, change: StatusUpdate) -> None:
    now = utcnow()
    values = {"status": change.status, "updated_at": now}

    if change.viewers is not None:
        values["viewers"] = change.viewers
    if change.status == "live" and change.live_start:
        values["last_live_start"] = change.live_start
    if change.status != "offline":
        values["last_seen"] = now

    # Unknown ids match zero rows; this is not reported as an error
    db.execute(update(Creator).where(Creator.id == creator_id).values(**values))
    db.commit()

    record_event(db, "status_change", {"status": change.status, "viewers": change.viewers}, creator_id)

def bulk_set_status(db: Session, updates: Iterable[BulkStatusItem]) -> int:
    """
    Applies every update as its own statement and commit. There is no batch
    atomicity: a failing item is logged and skipped, the rest still apply.
    Returns the number of updates submitted.
    """
    submitted = 0
    for item in updates:
        submitted += 1
        now = utcnow()
        try:
            db.execute(
                update(Creator)
                .where(Creator.id == item.id)
                .values(status=item.status, viewers=item.viewers or 0, last_seen=now, updated_at=now)
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning(f"Bulk status update failed for creator {item.id}", exc_info=True)
    return submitted


# --- Analytics ---

def record_event(db: Session, event_type: str, data: Dict[str, Any], creator_id: int = None) -> None:
    """Best-effort append. Failures are logged, never raised."""
    try:
        db.add(AnalyticsEvent(event_type=event_type, event_data=json.dumps(data), creator_id=creator_id))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.warning(f"Could not record analytics event {event_type} for creator {creator_id}", exc_info=True)

def creator_stats(db: Session) -> Dict[str, int]:
    row = db.query(
        func.count(Creator.id).label("total_creators"),
        func.coalesce(func.sum(case((Creator.status == "live", 1), else_=0)), 0).label("live_creators"),
        func.coalesce(func.sum(case((Creator.is_featured.is_(True), 1), else_=0)), 0).label("featured_creators"),
        func.coalesce(func.sum(case((Creator.is_paid_member.is_(True), 1), else_=0)), 0).label("paid_members"),
        func.coalesce(func.sum(Creator.viewers), 0).label("total_viewers"),
    ).one()
    return dict(row._mapping)

def subscription_stats(db: Session) -> Dict[str, int]:
    row = db.query(
        func.count(Subscription.id).label("total_subscriptions"),
        func.coalesce(func.sum(case((Subscription.status == "active", 1), else_=0)), 0).label("active_subscriptions"),
        func.coalesce(func.sum(case((Subscription.status == "active", Subscription.amount), else_=0)), 0).label("monthly_revenue"),
    ).one()
    return dict(row._mapping)

def recent_activity(db: Session) -> List[Dict[str, Any]]:
    cutoff = utcnow() - RECENT_ACTIVITY_WINDOW
    rows = (
        db.query(AnalyticsEvent.event_type, func.count(AnalyticsEvent.id).label("count"))
        .filter(AnalyticsEvent.timestamp > cutoff)
        .group_by(AnalyticsEvent.event_type)
        .all()
    )
    return [{"event_type": event_type, "count": count} for event_type, count in rows]

def dashboard_stats(db: Session) -> Dict[str, Any]:
    # Three separate reads, not one transaction; under concurrent writes
    # the sections may reflect slightly different moments.
    return {
        "creators": creator_stats(db),
        "subscriptions": subscription_stats(db),
        "recent_activity": recent_activity(db),
    }


# --- Subscriptions ---

def list_subscriptions(db: Session) -> List[Dict[str, Any]]:
    rows = (
        db.query(Subscription, Creator.display_name, Creator.email)
        .outerjoin(Creator, Subscription.creator_id == Creator.id)
        .order_by(Subscription.created_at.desc())
        .all()
    )
    return [subscription_row(sub, display_name, email) for sub, display_name, email in rows]

def get_subscription(db: Session, subscription_id: int) -> Dict[str, Any]:
    row = (
        db.query(Subscription, Creator.display_name, Creator.email)
        .outerjoin(Creator, Subscription.creator_id == Creator.id)
        .filter(Subscription.id == subscription_id)
        .first()
    )
    if row is None:
        raise NotFound("Subscription not found")
    return subscription_row(*row)

def subscription_row(sub: Subscription, display_name: str = None, email: str = None) -> Dict[str, Any]:
    data = {column.name: getattr(sub, column.name) for column in Subscription.__table__.columns}
    data["display_name"] = display_name
    data["email"] = email
    return data


# --- Site settings ---

def get_settings(db: Session) -> Dict[str, Optional[str]]:
    return {row.key: row.value for row in db.query(SiteSetting).all()}

def upsert_settings(db: Session, values: Dict[str, Any]) -> None:
    # Keys missing from `values` are left untouched
    now = utcnow()
    for key, value in values.items():
        stored = value if isinstance(value, str) or value is None else json.dumps(value)
        db.merge(SiteSetting(key=key, value=stored, updated_at=now))
    db.commit()


# --- Export ---

def export_creators(db: Session) -> List[Creator]:
    return db.query(Creator).order_by(Creator.is_featured.desc(), Creator.display_name.asc()).all()


# --- Bootstrap ---

def seed_defaults(db: Session, username: str, email: str, password: str) -> None:
    """Creates the default super admin and site settings when they are missing."""
    if get_admin_by_login(db, username) is None and get_admin_by_login(db, email) is None:
        create_admin(db, username, email, password, role="super_admin")
        logger.info(f"Created default admin user '{username}'")

    existing = set(get_settings(db))
    for key, value in DEFAULT_SITE_SETTINGS.items():
        if key not in existing:
            db.add(SiteSetting(key=key, value=value))
    db.commit()
