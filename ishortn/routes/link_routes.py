from flask import Blueprint, request

from ..models.link import Link
from ..schemas.link_schema import public_link, serialize_link
from ..services import links as link_service
from ..services.password import change_link_password
from ..utils.response import api_response
from ..utils.workspace import workspace_filter
from .auth_routes import workspace_required

links_bp = Blueprint("links", __name__)


def _link_data(link) -> dict:
    return public_link(serialize_link(link))


@links_bp.route("", methods=["GET"])
@workspace_required
def list_links(workspace):
    query = workspace_filter(Link.query, workspace)
    if request.args.get("archived", "false").lower() != "true":
        query = query.filter(Link.archived.is_(False))

    links = query.order_by(Link.created_at.desc()).all()
    return api_response(True, "Links fetched", [_link_data(link) for link in links])


@links_bp.route("", methods=["POST"])
@workspace_required
def create(workspace):
    link = link_service.create_link(workspace, request.get_json() or {})
    return api_response(True, "Link created", _link_data(link))


@links_bp.route("/<int:link_id>", methods=["GET"])
@workspace_required
def get_link_details(workspace, link_id):
    link = link_service.get_workspace_link(workspace, link_id)
    return api_response(True, "Link fetched", _link_data(link))


@links_bp.route("/<int:link_id>", methods=["PUT"])
@workspace_required
def update(workspace, link_id):
    link = link_service.update_link(workspace, link_id, request.get_json() or {})
    return api_response(True, "Link updated", _link_data(link))


@links_bp.route("/<int:link_id>", methods=["DELETE"])
@workspace_required
def delete(workspace, link_id):
    link_service.delete_link(workspace, link_id)
    return api_response(True, "Link deleted", None)


@links_bp.route("/<int:link_id>/toggle", methods=["POST"])
@workspace_required
def toggle_status(workspace, link_id):
    link = link_service.toggle_link_status(workspace, link_id)
    return api_response(True, "Link disabled" if link.disabled else "Link enabled", _link_data(link))


@links_bp.route("/<int:link_id>/archive", methods=["POST"])
@workspace_required
def toggle_archive(workspace, link_id):
    link = link_service.toggle_archive(workspace, link_id)
    return api_response(True, "Link archived" if link.archived else "Link restored", _link_data(link))


@links_bp.route("/<int:link_id>/public-stats", methods=["POST"])
@workspace_required
def toggle_public_stats(workspace, link_id):
    link = link_service.toggle_public_stats(workspace, link_id)
    return api_response(True, "Public stats updated", _link_data(link))


@links_bp.route("/<int:link_id>/reset-stats", methods=["POST"])
@workspace_required
def reset_statistics(workspace, link_id):
    link_service.reset_link_statistics(workspace, link_id)
    return api_response(True, "Link statistics reset", None)


@links_bp.route("/<int:link_id>/password", methods=["POST"])
@workspace_required
def change_password(workspace, link_id):
    data = request.get_json() or {}
    link = change_link_password(workspace, link_id, data.get("password"))
    message = "Link password updated" if link.password_hash else "Link password removed"
    return api_response(True, message, _link_data(link))


@links_bp.route("/visits", methods=["GET"])
@workspace_required
def visits(workspace):
    alias = (request.args.get("alias") or "").strip()
    if not alias:
        return api_response(False, "alias is required", None)

    data = link_service.get_link_visits(
        workspace,
        alias,
        domain=request.args.get("domain"),
        range_name=request.args.get("range", "7d"),
    )
    return api_response(True, "Link visits fetched", data)


@links_bp.route("/alias-availability", methods=["GET"])
@workspace_required
def alias_availability(workspace):
    alias = (request.args.get("alias") or "").strip()
    available = link_service.check_alias_availability(alias, request.args.get("domain"))
    return api_response(True, "Alias checked", {"alias": alias, "available": available})


@links_bp.route("/folders", methods=["POST"])
@workspace_required
def create_folder(workspace):
    data = request.get_json() or {}
    folder = link_service.create_folder(workspace, data.get("name"))
    return api_response(True, "Folder created", {"id": folder.id, "name": folder.name})
