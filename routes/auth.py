# routes/auth.py
from flask import jsonify, request
from flask.views import MethodView
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required
from flask_smorest import Blueprint, abort

from utils.web import get_users

blp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _user_payload(user):
    return {
        "id": user["id"],
        "first_name": user["first_name"],
        "last_name": user["last_name"],
        "email": user["email"],
        "joined_events": user["joined_events"],
    }


@blp.route("/login")
class UserLogin(MethodView):
    def post(self):
        """Login and get a JWT for the JSON API"""
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not email or not password:
            abort(400, message="Email and password required")

        user = get_users().authenticate(email, password)
        if user is None:
            abort(401, message="Invalid credentials")

        access_token = create_access_token(identity=str(user["id"]), additional_claims={"email": user["email"]})
        return jsonify({
            "success": True,
            "access_token": access_token,
            "user": _user_payload(user)
        }), 200


@blp.route("/me")
class UserMe(MethodView):
    @jwt_required()
    def get(self):
        """Get current user details"""
        user = get_users().find_by_id(int(get_jwt_identity()))
        if not user:
            abort(404, message="User not found")

        payload = _user_payload(user)
        payload["created_at"] = user["created_at"].isoformat() if user.get("created_at") else None
        return jsonify({"success": True, "user": payload})
