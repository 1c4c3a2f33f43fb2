# routes/api.py
from flask import jsonify, request
from flask.views import MethodView
from flask_jwt_extended import get_jwt_identity, jwt_required, verify_jwt_in_request
from flask_smorest import Blueprint, abort

from routes.statistics import configured_fields
from utils.web import get_census, get_registry, get_users, parse_sort

blp = Blueprint("api", __name__, url_prefix="/api")


def _viewer_joined_events():
    """Joined events of the token holder, if a token was sent"""
    verify_jwt_in_request(optional=True)
    identity = get_jwt_identity()
    if identity is None:
        return []
    user = get_users().find_by_id(int(identity))
    return user["joined_events"] if user else []


class OpportunityList(MethodView):
    """Endpoint to list opportunities"""

    def get(self):
        """Get all opportunities, optionally filtered by zip code and sorted by title"""
        registry = get_registry()
        opportunities = registry.get_all()

        zipcode = request.args.get("zipcode")
        if zipcode:
            try:
                opportunities = registry.get_filtered(zipcode, opportunities)
            except ValueError:
                abort(400, message="zipcode must be an integer")

        ascending = parse_sort(request.args.get("sort"))
        if ascending is not None:
            opportunities = registry.get_sorted(ascending, opportunities)

        opportunities = registry.mark_joined(_viewer_joined_events(), opportunities)
        return jsonify({
            "success": True,
            "count": len(opportunities),
            "opportunities": [o.to_dict() for o in opportunities]
        }), 200


class OpportunityDetail(MethodView):
    """Endpoint for a single opportunity"""

    def get(self, opportunity_id):
        """Get a specific opportunity by ID"""
        registry = get_registry()
        opportunity = registry.get(opportunity_id)
        if opportunity is None:
            abort(404, message="Opportunity not found")

        opportunity = registry.mark_joined(_viewer_joined_events(), [opportunity])[0]
        return jsonify({"success": True, "opportunity": opportunity.to_dict()}), 200


class OpportunityMembership(MethodView):
    """Join or leave an opportunity as the token holder"""

    @jwt_required()
    def post(self, opportunity_id):
        if get_registry().get(opportunity_id) is None:
            abort(404, message="Opportunity not found")

        joined = get_users().join(int(get_jwt_identity()), opportunity_id)
        if joined is None:
            abort(500, message="Could not join opportunity")
        return jsonify({"success": True, "joined_events": joined}), 200

    @jwt_required()
    def delete(self, opportunity_id):
        joined = get_users().leave(int(get_jwt_identity()), opportunity_id)
        if joined is None:
            abort(500, message="Could not leave opportunity")
        return jsonify({"success": True, "joined_events": joined}), 200


class StatisticsSummary(MethodView):
    """Endpoint to get census volunteer statistics"""

    def get(self):
        return jsonify({"success": True, "statistics": get_census().summary(configured_fields())}), 200


# Register views
blp.add_url_rule("/opportunities", view_func=OpportunityList.as_view("opportunity_list"))
blp.add_url_rule("/opportunities/<int:opportunity_id>", view_func=OpportunityDetail.as_view("opportunity_detail"))
blp.add_url_rule(
    "/opportunities/<int:opportunity_id>/join",
    view_func=OpportunityMembership.as_view("opportunity_membership"),
    methods=["POST", "DELETE"],
)
blp.add_url_rule("/statistics", view_func=StatisticsSummary.as_view("statistics_summary"))
