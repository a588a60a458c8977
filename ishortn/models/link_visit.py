import datetime
from ..extensions import db


class LinkVisit(db.Model):
    __tablename__ = "link_visits"

    id = db.Column(db.Integer, primary_key=True)
    link_id = db.Column(db.Integer, db.ForeignKey('links.id', ondelete="CASCADE"), nullable=False, index=True)
    device = db.Column(db.String(255))
    browser = db.Column(db.String(255))
    os = db.Column(db.String(255))
    model = db.Column(db.String(255), default="")
    referer = db.Column(db.String(255))
    country = db.Column(db.String(255))
    city = db.Column(db.String(255))
    continent = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, index=True)


class UniqueLinkVisit(db.Model):
    __tablename__ = "unique_link_visits"

    id = db.Column(db.Integer, primary_key=True)
    link_id = db.Column(db.Integer, db.ForeignKey('links.id', ondelete="CASCADE"), nullable=False, index=True)
    ip_hash = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint('link_id', 'ip_hash', name='uq_unique_visit'),
    )
