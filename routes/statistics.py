# routes/statistics.py
from flask import Blueprint, current_app, render_template

from services.census import CensusFields
from utils.web import get_census

blp = Blueprint("statistics", __name__)


def configured_fields():
    config = current_app.config
    return CensusFields(
        volunteer=config["CENSUS_VOLUNTEER_FIELD"],
        children=config["CENSUS_CHILDREN_FIELD"],
        online=config["CENSUS_ONLINE_FIELD"],
        hours=config["CENSUS_HOURS_FIELD"],
    )


@blp.route("/statistics")
def statistics():
    """Volunteer statistics from the US Census API"""
    summary = get_census().summary(configured_fields())
    return render_template("statistics.html", title="Statistics", stats=summary)
