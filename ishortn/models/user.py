import datetime
from ..extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(256), nullable=False)

    # Analytics events recorded in the current usage period
    monthly_event_count = db.Column(db.Integer, default=0, nullable=False)
    last_event_count_reset = db.Column(db.DateTime, nullable=True)
    event_usage_alert_level = db.Column(db.Integer, default=0, nullable=False)

    monthly_link_count = db.Column(db.Integer, default=0, nullable=False)
    last_link_count_reset = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    subscription = db.relationship("Subscription", uselist=False, back_populates="user")

    def __repr__(self):
        return f"<User {self.email}>"
