# services/users.py
"""
User accounts and the joined-events list each user carries.
"""
import logging
from datetime import datetime

from store import StoreError

logger = logging.getLogger(__name__)

TABLE = "users"


def public_user(row):
    """Strip the password hash from a user row"""
    if row is None:
        return None
    user = dict(row)
    user.pop("password", None)
    user["joined_events"] = list(user.get("joined_events") or [])
    return user


class UserDirectory:
    def __init__(self, store, bcrypt):
        self._store = store
        self._bcrypt = bcrypt

    def _find_row(self, **filters):
        try:
            rows = self._store.select(TABLE, filters=filters, limit=1)
        except StoreError:
            logger.exception("Failed to look up user")
            return None
        return rows[0] if rows else None

    def find_by_id(self, user_id):
        return public_user(self._find_row(id=user_id))

    def find_by_email(self, email):
        return public_user(self._find_row(email=email.strip().lower()))

    def register(self, first_name, last_name, email, password):
        """
        Create a user with a hashed password.

        Returns:
            The new user, or None if the email is taken or the store failed
        """
        email = email.strip().lower()
        if self._find_row(email=email):
            return None

        values = {
            "first_name": first_name.strip(),
            "last_name": last_name.strip(),
            "email": email,
            "password": self._bcrypt.generate_password_hash(password).decode("utf-8"),
            "joined_events": [],
        }
        try:
            row = self._store.insert(TABLE, values)
        except StoreError:
            logger.exception("Failed to register %s", email)
            return None

        logger.info("Registered user %s", row["id"])
        return public_user(row)

    def authenticate(self, email, password):
        row = self._find_row(email=email.strip().lower())
        if row and self._bcrypt.check_password_hash(row["password"], password):
            return public_user(row)
        return None

    def change_password(self, user_id, current_password, new_password):
        """Replace the password after verifying the current one"""
        row = self._find_row(id=user_id)
        if not row or not self._bcrypt.check_password_hash(row["password"], current_password):
            return False

        hashed = self._bcrypt.generate_password_hash(new_password).decode("utf-8")
        try:
            self._store.update(TABLE, user_id, {"password": hashed, "updated_at": datetime.now()})
        except StoreError:
            logger.exception("Failed to change password for user %s", user_id)
            return False
        return True

    def _save_joined(self, user_id, joined):
        try:
            row = self._store.update(TABLE, user_id, {"joined_events": joined})
        except StoreError:
            logger.exception("Failed to update joined events for user %s", user_id)
            return None
        return list(row["joined_events"])

    def join(self, user_id, opportunity_id):
        """
        Add an opportunity to the user's joined events.

        Joining twice leaves a single entry.

        Returns:
            The joined-events list, or None if the user is unknown or the store failed
        """
        row = self._find_row(id=user_id)
        if row is None:
            return None

        joined = list(row.get("joined_events") or [])
        if opportunity_id in joined:
            return joined

        joined.append(opportunity_id)
        return self._save_joined(user_id, joined)

    def leave(self, user_id, opportunity_id):
        """Drop an opportunity from the user's joined events"""
        row = self._find_row(id=user_id)
        if row is None:
            return None

        joined = list(row.get("joined_events") or [])
        if opportunity_id not in joined:
            return joined

        return self._save_joined(user_id, [i for i in joined if i != opportunity_id])

    def display_names(self, user_ids):
        """Map user ids to 'First Last'"""
        try:
            rows = self._store.select(TABLE, filters={"id": list(user_ids)})
        except StoreError:
            logger.exception("Failed to look up user names")
            return {}
        return {row["id"]: f"{row['first_name']} {row['last_name']}" for row in rows}

    @staticmethod
    def session_snapshot(user):
        """Denormalized copy of the user kept in the browser session"""
        created_at = user.get("created_at") or datetime.now()
        return {
            "id": user["id"],
            "first_name": user["first_name"],
            "last_name": user["last_name"],
            "email": user["email"],
            "created_at": created_at.isoformat(),
            "date_str": f"{created_at.month}/{created_at.day}/{created_at.year}",
            "joined_events": list(user.get("joined_events") or []),
        }
