from flask import Blueprint, current_app, redirect, request

from ..extensions import get_link_resolver
from ..schemas.link_schema import public_link
from ..services.password import verify_link_password
from ..services.resolver import ACTIVE, METADATA_CONTEXT, REDIRECT_CONTEXT
from ..utils.response import api_response

redirect_bp = Blueprint("redirect", __name__)

LOCAL_HOSTS = {"localhost", "127.0.0.1"}


def _bare_domain(value: str) -> str:
    value = value.strip().lower()
    if value.startswith("www."):
        value = value[len("www."):]
    return value


def _request_domain() -> str:
    domain = request.args.get("domain")
    if domain and domain.strip():
        return _bare_domain(domain)

    host = _bare_domain((request.host or "").split(":")[0])
    if not host or host in LOCAL_HOSTS:
        return current_app.config["DEFAULT_DOMAIN"]
    return host


def _link_payload(link: dict) -> dict:
    if link.get("password_hash"):
        return {"id": link["id"], "password_protected": True, "status": link["status"]}
    return public_link(link)


@redirect_bp.route("/api/link", methods=["GET"])
def get_link():
    alias = (request.args.get("alias") or "").strip()
    if not alias:
        return api_response(False, "alias is required", None)

    link = get_link_resolver().resolve(alias, _request_domain(), request.headers, context=REDIRECT_CONTEXT)
    if link is None:
        return api_response(False, "Link not found", None)

    return api_response(True, "Link resolved", _link_payload(link))


@redirect_bp.route("/api/link/metadata", methods=["GET"])
def get_link_metadata():
    alias = (request.args.get("alias") or "").strip()
    if not alias:
        return api_response(False, "alias is required", None)

    link = get_link_resolver().resolve(alias, _request_domain(), request.headers, context=METADATA_CONTEXT)
    if link is None:
        return api_response(False, "Link not found", None)

    return api_response(True, "Link metadata", {
        "id": link["id"],
        "alias": link["alias"],
        "domain": link["domain"],
        "metadata": link.get("metadata") or {},
        "password_protected": bool(link.get("password_hash")),
        "status": link["status"],
    })


@redirect_bp.route("/api/link/verify-password", methods=["POST"])
def verify_password_route():
    data = request.get_json() or {}
    link_id = data.get("id")
    password = data.get("password") or ""
    if not isinstance(password, str):
        return api_response(False, "password must be a string", None)

    try:
        link_id = int(link_id)
    except (TypeError, ValueError):
        return api_response(False, "id is required", None)

    link = verify_link_password(get_link_resolver(), link_id, password, request.headers)
    if link is None:
        return api_response(False, "Incorrect password", None)

    return api_response(True, "Password verified", public_link(link))


@redirect_bp.route("/<alias>")
def redirection(alias):
    link = get_link_resolver().resolve(alias, _request_domain(), request.headers, context=REDIRECT_CONTEXT)
    if link is None:
        return api_response(False, "URL does not exist", None)

    if link.get("password_hash"):
        return api_response(False, "This link is password protected", _link_payload(link))

    if link["status"] != ACTIVE:
        return api_response(False, f"This link is {link['status'].replace('_', ' ')}", {"status": link["status"]})

    return redirect(link["url"], code=302)
