from dataclasses import dataclass
from typing import Optional

from ..models.link import Link


@dataclass
class Workspace:
    """The ownership boundary a management request acts inside."""

    type: str                      # "personal" or "team"
    user_id: int                   # the acting user
    plan: str
    team_id: Optional[int] = None
    owner_id: Optional[int] = None  # team owner; usage is metered against them
    role: str = "owner"

    @property
    def is_team(self) -> bool:
        return self.type == "team"

    @property
    def billing_user_id(self) -> int:
        return self.owner_id if self.is_team and self.owner_id else self.user_id


def workspace_filter(query, workspace: Workspace, model=Link):
    """Restrict a query on a workspace-scoped model to the given workspace."""
    if workspace.is_team:
        return query.filter(model.team_id == workspace.team_id)
    return query.filter(model.user_id == workspace.user_id, model.team_id.is_(None))


def workspace_ownership(workspace: Workspace) -> dict:
    return {
        "user_id": workspace.billing_user_id,
        "team_id": workspace.team_id if workspace.is_team else None,
    }
