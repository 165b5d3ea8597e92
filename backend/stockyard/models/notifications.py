from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class NotificationRecipient(db.Model):
    """Address that receives transfer and reconciliation emails while active."""
    __tablename__ = "notification_recipients"
    __table_args__ = (
        db.UniqueConstraint("email", name="uq_notification_recipients_email"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(255), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "active": self.active,
            "created_at": to_utc_z(self.created_at),
        }
