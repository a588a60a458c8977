import datetime
from ..extensions import db


class Subscription(db.Model):
    __tablename__ = 'subscriptions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), unique=True, nullable=False)

    status = db.Column(db.String(50), default='active', nullable=False)  # active, cancelled, expired, past_due
    plan = db.Column(db.String(20), default='pro', nullable=True)        # pro, ultra

    # Billing provider identifiers, mapped onto a plan by resolve_plan()
    variant_id = db.Column(db.Integer, nullable=True)
    product_id = db.Column(db.Integer, nullable=True)

    renews_at = db.Column(db.DateTime, nullable=True)
    created_date = db.Column(db.DateTime, default=datetime.datetime.utcnow, nullable=False)

    user = db.relationship("User", back_populates="subscription")

    def __repr__(self):
        return f"<Subscription {self.id} - User {self.user_id} ({self.status})>"
