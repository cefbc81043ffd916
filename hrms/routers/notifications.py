from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import List

from hrms.database import get_db
from hrms.models.employee import Employee
from hrms.models.notification import Notification
from hrms.routers.auth_deps import get_current_actor
from hrms.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["Notifications"])

@router.get("/", response_model=List[NotificationResponse])
def get_notifications(
    unread_only: bool = False,
    db: Session = Depends(get_db),
    current_actor: Employee = Depends(get_current_actor)
):
    query = db.query(Notification).filter(Notification.recipient_email == current_actor.email)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    return query.order_by(Notification.id.desc()).limit(50).all()

@router.patch("/{notification_id}/read", response_model=NotificationResponse)
def mark_notification_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_actor: Employee = Depends(get_current_actor)
):
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_email == current_actor.email
    ).first()

    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return notification

@router.post("/mark-all-read")
def mark_all_notifications_as_read(
    db: Session = Depends(get_db),
    current_actor: Employee = Depends(get_current_actor)
):
    db.query(Notification).filter(
        Notification.recipient_email == current_actor.email,
        Notification.is_read.is_(False)
    ).update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return {"message": "All notifications marked as read"}
