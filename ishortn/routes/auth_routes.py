from functools import wraps

import jwt
from flask import Blueprint, request

from ..repositories.user_repository import get_team_membership, get_user_by_id
from ..schemas.user_schema import serialize_user
from ..services.user_service import authenticate_user, create_user
from ..utils.jwt_helper import decode_token, encode_token
from ..utils.plan_checker import resolve_plan
from ..utils.response import api_response
from ..utils.workspace import Workspace


auth_bp = Blueprint("auth", __name__)


@auth_bp.route('/signups', methods=['POST'])
def signup():
    data = request.get_json() or {}

    name = (data.get('name') or "").strip()
    email = (data.get('email') or "").strip().lower()
    password = data.get('password')

    if not email or not password:
        return api_response(False, "email and password are required", None)

    user = create_user(name=name, email=email, password=password)
    if user is None:
        return api_response(False, "User already exists", None)

    return api_response(True, "Signup successful", {
        "token": encode_token(user.id),
        "user": serialize_user(user, plan="free"),
    })


@auth_bp.route('/login', methods=['POST'])
def login():
    data = request.get_json() or {}
    email = (data.get('email') or "").strip().lower()
    password = data.get('password')

    user = authenticate_user(email, password)
    if user is None:
        return api_response(False, "Invalid credentials", None)

    return api_response(True, "Login successful", {"token": encode_token(user.id)})


def _current_user_from_request():
    token = None
    if 'Authorization' in request.headers:
        auth_header = request.headers['Authorization']
        if " " in auth_header:
            token = auth_header.split(" ")[1]
        else:
            token = auth_header

    if not token:
        return None, "Token is missing!"

    try:
        payload = decode_token(token)
    except jwt.InvalidTokenError:
        return None, "Invalid or expired token!"

    user = get_user_by_id(payload.get('user_id'))
    if not user:
        return None, "User not found!"

    return user, None


def token_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        current_user, error = _current_user_from_request()
        if error:
            return api_response(False, error, None)
        return f(current_user, *args, **kwargs)

    return decorated


def build_workspace(user, team_id=None):
    """Personal workspace by default; X-Team-Id switches to a team the user belongs to."""
    if not team_id:
        return Workspace(type="personal", user_id=user.id, plan=resolve_plan(user.subscription))

    membership = get_team_membership(team_id, user.id)
    if membership is None:
        return None

    team, member = membership
    # Team workspaces carry every feature
    return Workspace(
        type="team",
        user_id=user.id,
        plan="ultra",
        team_id=team.id,
        owner_id=team.owner_id,
        role=member.role,
    )


def workspace_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        current_user, error = _current_user_from_request()
        if error:
            return api_response(False, error, None)

        team_id = request.headers.get("X-Team-Id", type=int)
        workspace = build_workspace(current_user, team_id)
        if workspace is None:
            return api_response(False, "You are not a member of this team.", None)

        return f(workspace, *args, **kwargs)

    return decorated


@auth_bp.route('/me')
@token_required
def me(current_user):
    return api_response(True, "Profile fetched", serialize_user(current_user, plan=resolve_plan(current_user.subscription)))


@auth_bp.route('/token', methods=['POST'])
@token_required
def refresh_token(current_user):
    return api_response(True, "Token issued", {"access_token": encode_token(current_user.id)})
