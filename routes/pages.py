# routes/pages.py
from flask import Blueprint, render_template, request

from utils.web import current_user, get_registry, get_users, login_required, parse_sort

blp = Blueprint("pages", __name__)


def _viewer_joined_events():
    """Fresh joined-events list for the logged-in viewer"""
    user = current_user()
    if user is None:
        return []
    stored = get_users().find_by_id(user["id"])
    if stored is None:
        return user.get("joined_events", [])
    return stored["joined_events"]


@blp.route("/")
@blp.route("/filter")
def home():
    """Home page listing opportunities, optionally filtered and sorted"""
    registry = get_registry()
    opportunities = registry.get_all()

    zip_code = request.args.get("zipcode", type=int)
    if zip_code is not None:
        opportunities = registry.get_filtered(zip_code, opportunities)

    ascending = parse_sort(request.args.get("sort"))
    if ascending is not None:
        opportunities = registry.get_sorted(ascending, opportunities)

    opportunities = registry.mark_joined(_viewer_joined_events(), opportunities)

    return render_template(
        "index.html",
        title="Home",
        opportunities=opportunities,
        zipcode=zip_code,
        sort=request.args.get("sort", ""),
    )


@blp.route("/dashboard")
@login_required
def dashboard():
    """Joined opportunities split into upcoming and expired"""
    registry = get_registry()
    user = current_user()

    joined = registry.get_joined(_viewer_joined_events())
    upcoming = [o for o in joined if not o.is_expired()]
    expired = [o for o in joined if o.is_expired()]

    ascending = parse_sort(request.args.get("sortupcoming"))
    if ascending is not None:
        upcoming = registry.get_sorted(ascending, upcoming)

    ascending = parse_sort(request.args.get("sortexpired"))
    if ascending is not None:
        expired = registry.get_sorted(ascending, expired)

    organizing = [o for o in registry.get_all() if o.is_organized_by(user["id"])]

    return render_template(
        "dashboard.html",
        title="Dashboard",
        upcoming=upcoming,
        expired=expired,
        organizing=organizing,
    )


@blp.route("/profile")
@login_required
def profile():
    return render_template("profile.html", title="Profile")
