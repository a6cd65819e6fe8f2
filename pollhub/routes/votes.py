from flask import current_app, jsonify, request

from pollhub.extensions import db
from pollhub.routes.helpers import request_payload
from pollhub.services.voting import VoteService


def _vote_service():
    return VoteService(
        db.session,
        voter_id_max_length=current_app.config["VOTER_ID_MAX_LENGTH"],
    )


def register_vote_routes(app):
    @app.route("/api/votes", methods=["POST"])
    def cast_vote():
        data = request_payload(request)
        voter_id = data.get("voterId", data.get("voter_id"))

        _vote_service().cast_vote(
            data.get("pollId"), data.get("competitorId"), voter_id
        )
        return jsonify({"message": "Vote recorded successfully!"}), 200

    @app.route("/api/votes/status")
    def vote_status():
        poll_id = request.args.get("pollId")
        voter_id = request.args.get("voterId", request.args.get("voter_id"))

        if not poll_id or not voter_id:
            return jsonify({"message": "Missing pollId or voterId"}), 400

        already_voted = _vote_service().has_voted(poll_id, voter_id)
        return jsonify({"alreadyVoted": already_voted})
