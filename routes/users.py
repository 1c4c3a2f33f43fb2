# routes/users.py
import logging

from flask import Blueprint, redirect, render_template, request, session, url_for

from utils.web import current_user, get_users, login_required, login_user

logger = logging.getLogger(__name__)

blp = Blueprint("users", __name__)

MIN_PASSWORD_LENGTH = 8


@blp.route("/register", methods=["GET", "POST"])
def register():
    """Registration form; logs the new user in on success"""
    if request.method == "GET":
        return render_template("users/register.html", title="Register")

    first_name = request.form.get("firstname", "").strip()
    last_name = request.form.get("lastname", "").strip()
    email = request.form.get("email", "").strip()
    password = request.form.get("password", "")
    confirm = request.form.get("confirm-pwd", password)

    error = None
    if not first_name or not last_name or not email or not password:
        error = "All fields are required"
    elif len(password) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    elif password != confirm:
        error = "Passwords do not match"

    if error is None:
        users = get_users()
        if users.find_by_email(email):
            error = "An account with that email already exists"
        else:
            user = users.register(first_name, last_name, email, password)
            if user is None:
                error = "Could not create your account, please try again"
            else:
                login_user(user)
                return redirect(url_for("pages.home"))

    return render_template("users/register.html", title="Register", error=error, form=request.form), 400


@blp.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "GET":
        return render_template("users/login.html", title="Login")

    email = request.form.get("email", "")
    password = request.form.get("password", "")

    user = get_users().authenticate(email, password)
    if user is None:
        return render_template("users/login.html", title="Login", error="Invalid credentials"), 401

    login_user(user)
    return redirect(url_for("pages.home"))


@blp.route("/logout")
def logout():
    session.clear()
    return redirect(url_for("users.login"))


@blp.route("/change-password", methods=["GET", "POST"])
@login_required
def change_password():
    """Change the logged-in user's password"""
    if request.method == "GET":
        return render_template("users/change_password.html", title="Change Password")

    current = request.form.get("password", "")
    new = request.form.get("newpassword", "")
    confirm = request.form.get("confirm-pwd", "")

    error = None
    if len(new) < MIN_PASSWORD_LENGTH:
        error = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
    elif new != confirm:
        error = "Passwords do not match"
    elif not get_users().change_password(current_user()["id"], current, new):
        error = "Current password is incorrect"

    if error:
        return render_template("users/change_password.html", title="Change Password", error=error), 400

    logger.info("Password changed for user %s", current_user()["id"])
    return redirect(url_for("pages.profile"))
