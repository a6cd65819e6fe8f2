from flask import jsonify

from pollhub.models import Poll


def register_county_routes(app):
    @app.route("/api/county/<county_name>")
    def county_poll(county_name):
        poll = (
            Poll.query.filter(Poll.region.ilike(county_name))
            .order_by(Poll.id)
            .first()
        )
        if poll is None:
            return jsonify({"message": "Poll not found"}), 404
        return jsonify({"pollId": poll.id})
