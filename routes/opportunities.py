# routes/opportunities.py
from datetime import datetime

from flask import Blueprint, abort, redirect, render_template, request, url_for

from services.registry import Opportunity
from utils.web import current_user, get_registry, get_users, login_required, update_session_joined

blp = Blueprint("opportunities", __name__, url_prefix="/opportunity")


def _parse_form(form):
    """
    Read opportunity fields from a submitted form

    Raises:
        ValueError: with a message suitable for showing to the user
    """
    title = form.get("title", "").strip()
    if not title:
        raise ValueError("Title is required")

    try:
        zip_code = int(form.get("zipcode", "").strip())
    except ValueError:
        raise ValueError("Zip code must be a number") from None

    date = form.get("date", "").strip()
    start_time = form.get("starttime", "").strip() or "00:00"
    end_time = form.get("endtime", "").strip() or start_time
    try:
        start = datetime.strptime(f"{date} {start_time}", "%Y-%m-%d %H:%M")
        end = datetime.strptime(f"{date} {end_time}", "%Y-%m-%d %H:%M")
    except ValueError:
        raise ValueError("Enter a valid date and time") from None

    return {
        "title": title,
        "description": form.get("description", "").strip(),
        "zip_code": zip_code,
        "start": start,
        "end": end,
    }


def _get_owned_or_404(opportunity_id):
    opportunity = get_registry().get(opportunity_id)
    if opportunity is None:
        abort(404)
    if not opportunity.is_organized_by(current_user()["id"]):
        abort(403)
    return opportunity


@blp.route("/create", methods=["GET", "POST"])
@login_required
def create():
    """Create opportunity form"""
    if request.method == "GET":
        return render_template("opportunities/create.html", title="Create Opportunity")

    user = current_user()
    try:
        fields = _parse_form(request.form)
        candidate = Opportunity(created_by=user["id"], organizers=[user["id"]], **fields)
        candidate.validate()
    except ValueError as e:
        return render_template(
            "opportunities/create.html", title="Create Opportunity", error=str(e), form=request.form
        ), 400

    if get_registry().add(candidate) is None:
        return render_template(
            "opportunities/create.html",
            title="Create Opportunity",
            error="Failed to create opportunity",
            form=request.form,
        ), 500

    return redirect(url_for("pages.home"))


@blp.route("/<int:opportunity_id>/edit", methods=["GET", "POST"])
@login_required
def edit(opportunity_id):
    """Edit an opportunity the user organizes"""
    opportunity = _get_owned_or_404(opportunity_id)
    if request.method == "GET":
        return render_template("opportunities/edit.html", title="Edit Opportunity", opportunity=opportunity)

    try:
        fields = _parse_form(request.form)
        Opportunity(**fields).validate()
    except ValueError as e:
        return render_template(
            "opportunities/edit.html", title="Edit Opportunity", opportunity=opportunity, error=str(e)
        ), 400

    if get_registry().update(opportunity, fields) is None:
        return render_template(
            "opportunities/edit.html",
            title="Edit Opportunity",
            opportunity=opportunity,
            error="Failed to update opportunity",
        ), 500

    return redirect(url_for("pages.dashboard"))


@blp.route("/<int:opportunity_id>/join", methods=["POST"])
@login_required
def join(opportunity_id):
    if get_registry().get(opportunity_id) is not None:
        update_session_joined(get_users().join(current_user()["id"], opportunity_id))
    return redirect(request.referrer or url_for("pages.home"))


@blp.route("/<int:opportunity_id>/leave", methods=["POST"])
@login_required
def leave(opportunity_id):
    update_session_joined(get_users().leave(current_user()["id"], opportunity_id))
    return redirect(request.referrer or url_for("pages.home"))


@blp.route("/<int:opportunity_id>/delete", methods=["POST"])
@login_required
def delete(opportunity_id):
    opportunity = _get_owned_or_404(opportunity_id)
    get_registry().remove(opportunity)
    return redirect(url_for("pages.dashboard"))
