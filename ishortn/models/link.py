import datetime
from ..extensions import db
from .folder import link_tags


class Link(db.Model):
    __tablename__ = "links"

    id = db.Column(db.Integer, primary_key=True)
    alias = db.Column(db.String(64), nullable=False)
    domain = db.Column(db.String(255), nullable=False, default="ishortn.ink")
    url = db.Column(db.Text, nullable=False)
    name = db.Column(db.String(255), nullable=True)
    note = db.Column(db.String(255), nullable=True)

    password_hash = db.Column(db.String(256), nullable=True)
    disabled = db.Column(db.Boolean, default=False, nullable=False)
    archived = db.Column(db.Boolean, default=False, nullable=False)
    public_stats = db.Column(db.Boolean, default=False, nullable=False)

    # Optional expiry policy
    disable_link_after_clicks = db.Column(db.Integer, nullable=True)
    disable_link_after_date = db.Column(db.DateTime, nullable=True)

    # Workspace ownership: personal links have team_id NULL
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id'), nullable=True)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    folder_id = db.Column(db.Integer, db.ForeignKey('folders.id'), nullable=True)

    # "metadata" is reserved on declarative models
    meta = db.Column("metadata", db.JSON, nullable=True)      # title / description / image
    utm_params = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    tags = db.relationship("Tag", secondary=link_tags, lazy="selectin")
    visits = db.relationship("LinkVisit", backref="link", lazy=True, cascade="all, delete-orphan")
    unique_visits = db.relationship("UniqueLinkVisit", backref="link", lazy=True, cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Link {self.domain}:{self.alias}>"


db.Index(
    "uq_links_domain_alias_lower",
    Link.domain,
    db.func.lower(Link.alias),
    unique=True,
)
