import json

from flask import current_app, jsonify, request
from flask_login import current_user, login_required
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from pollhub.extensions import db
from pollhub.models import Competitor, Poll, Vote
from pollhub.routes.helpers import (
    clean_text,
    parse_flag,
    poll_summary,
    profile_data_uri,
    request_payload,
)
from pollhub.services.errors import NotFoundError, ValidationError
from pollhub.services.voting import live_leaderboard, tally_poll
from pollhub.utils import format_timestamp, parse_timestamp, utcnow

OPTIONAL_POLL_FIELDS = ("presidential", "county", "constituency", "ward")
REQUIRED_POLL_FIELDS = ("title", "category", "region")


def _get_poll(poll_id):
    poll = db.session.get(Poll, poll_id)
    if poll is None:
        raise NotFoundError("Poll not found")
    return poll


def _parse_competitors(raw):
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            raise ValidationError("competitors must be a JSON list.") from None
    if not isinstance(raw, list):
        raise ValidationError("competitors must be a JSON list.")

    entries = []
    for entry in raw:
        if not isinstance(entry, dict):
            raise ValidationError("Each competitor must be an object.")
        name = clean_text(entry.get("name"))
        if not name:
            raise ValidationError("Each competitor needs a name.")
        entries.append(
            {"id": entry.get("id"), "name": name, "party": clean_text(entry.get("party"))}
        )
    return entries


def _parse_expiry(raw):
    try:
        return parse_timestamp(raw)
    except ValueError:
        raise ValidationError("voting_expires_at must be an ISO 8601 timestamp.") from None


def _parse_spoiled(raw):
    try:
        spoiled = int(raw)
    except (TypeError, ValueError):
        raise ValidationError("spoiled_votes must be a non-negative integer.") from None
    if spoiled < 0:
        raise ValidationError("spoiled_votes must be a non-negative integer.")
    return spoiled


def _profile_upload(index):
    upload = request.files.get(f"profile{index}")
    if upload is None:
        return None
    return upload.read() or None


def _commit(action, poll_id=None):
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Could not %s poll %s", action, poll_id)
        return False
    return True


def _poll_detail(tally):
    poll = tally["poll"]
    results = []
    for row in tally["results"]:
        competitor = row["competitor"]
        results.append(
            {
                "id": competitor.id,
                "name": competitor.name,
                "party": competitor.party or "Independent",
                "profile": profile_data_uri(competitor.profile_image),
                "voteCount": row["count"],
                "percentage": row["percentage"],
            }
        )

    return {
        "id": poll.id,
        "title": poll.title,
        "category": poll.category,
        "presidential": poll.presidential,
        "region": poll.region,
        "county": poll.county,
        "constituency": poll.constituency,
        "ward": poll.ward,
        "voting_expires_at": format_timestamp(poll.voting_expires_at),
        "published": poll.published,
        "spoiled_votes": poll.spoiled_votes or 0,
        "totalVotes": poll.total_votes or 0,
        "validVotes": tally["total_votes"],
        "lastUpdated": format_timestamp(utcnow()),
        "results": results,
    }


def register_poll_routes(app):
    @app.route("/api/polls")
    def list_polls():
        category = clean_text(request.args.get("category"))

        query = Poll.query
        if category:
            query = query.filter_by(category=category)
        if not current_user.is_authenticated:
            query = query.filter(Poll.published.is_(True))

        polls = query.order_by(Poll.created_at.desc(), Poll.id.desc()).all()
        return jsonify([poll_summary(poll) for poll in polls])

    @app.route("/api/polls/live")
    def live_polls():
        leaderboard = live_leaderboard(
            db.session, size=current_app.config["LEADERBOARD_SIZE"]
        )

        payload = []
        for entry in leaderboard:
            poll = entry["poll"]
            payload.append(
                {
                    "id": poll.id,
                    "title": poll.title,
                    "category": poll.category,
                    "county": poll.county,
                    "voting_expires_at": format_timestamp(poll.voting_expires_at),
                    "total_votes": entry["total_votes"],
                    "top_candidates": [
                        {
                            "id": candidate["id"],
                            "name": candidate["name"],
                            "voteCount": candidate["count"],
                        }
                        for candidate in entry["top_candidates"]
                    ],
                }
            )
        return jsonify(payload)

    @app.route("/api/polls/<int:poll_id>")
    def poll_detail(poll_id):
        poll = _get_poll(poll_id)
        if not poll.published and not current_user.is_authenticated:
            raise NotFoundError("Poll not found")

        return jsonify(_poll_detail(tally_poll(db.session, poll.id)))

    @app.route("/api/polls", methods=["POST"])
    @login_required
    def create_poll():
        data = request_payload(request)
        values = {field: clean_text(data.get(field)) for field in REQUIRED_POLL_FIELDS}
        if not all(values.values()):
            return jsonify({"message": "Missing required fields for poll creation."}), 400

        competitors = _parse_competitors(data.get("competitors"))

        poll = Poll(
            **values,
            **{field: clean_text(data.get(field)) for field in OPTIONAL_POLL_FIELDS},
            voting_expires_at=_parse_expiry(data.get("voting_expires_at")),
            published=parse_flag(data.get("published")),
            total_votes=0,
            spoiled_votes=0,
        )
        for index, entry in enumerate(competitors):
            poll.competitors.append(
                Competitor(
                    name=entry["name"],
                    party=entry["party"],
                    profile_image=_profile_upload(index),
                )
            )
        db.session.add(poll)

        if not _commit("create"):
            return jsonify({"message": "Server error during poll creation."}), 500

        current_app.logger.info(
            "Poll %s created by %s with %d competitors",
            poll.id,
            current_user.username,
            len(competitors),
        )
        return jsonify({"success": True, "id": poll.id}), 201

    @app.route("/api/polls/<int:poll_id>", methods=["PUT"])
    @login_required
    def update_poll(poll_id):
        poll = _get_poll(poll_id)
        data = request_payload(request)

        for field in REQUIRED_POLL_FIELDS:
            if field in data:
                value = clean_text(data.get(field))
                if not value:
                    raise ValidationError(f"{field} cannot be empty.")
                setattr(poll, field, value)

        for field in OPTIONAL_POLL_FIELDS:
            if field in data:
                setattr(poll, field, clean_text(data.get(field)))

        if "voting_expires_at" in data:
            poll.voting_expires_at = _parse_expiry(data.get("voting_expires_at"))
        if "spoiled_votes" in data:
            poll.spoiled_votes = _parse_spoiled(data.get("spoiled_votes"))
        if "published" in data:
            poll.published = parse_flag(data.get("published"))

        if "competitors" in data:
            entries = _parse_competitors(data.get("competitors"))
            existing = {competitor.id: competitor for competitor in poll.competitors}
            kept_ids = set()

            for index, entry in enumerate(entries):
                image = _profile_upload(index)
                if entry["id"] in (None, ""):
                    poll.competitors.append(
                        Competitor(
                            name=entry["name"],
                            party=entry["party"],
                            profile_image=image,
                        )
                    )
                    continue

                try:
                    competitor = existing[int(entry["id"])]
                except (KeyError, TypeError, ValueError):
                    raise ValidationError(
                        "Competitor does not belong to the poll."
                    ) from None
                competitor.name = entry["name"]
                competitor.party = entry["party"]
                if image is not None:
                    competitor.profile_image = image
                kept_ids.add(competitor.id)

            for competitor_id, competitor in existing.items():
                if competitor_id not in kept_ids:
                    poll.competitors.remove(competitor)

            db.session.flush()
            poll.total_votes = (
                db.session.query(func.count(Vote.id))
                .filter(Vote.poll_id == poll.id)
                .scalar()
            )

        if not _commit("update", poll.id):
            return jsonify({"message": "Server error during poll update."}), 500

        current_app.logger.info("Poll %s updated by %s", poll.id, current_user.username)
        return jsonify({"success": True, "id": poll.id})

    @app.route("/api/polls/<int:poll_id>", methods=["DELETE"])
    @login_required
    def delete_poll(poll_id):
        poll = _get_poll(poll_id)

        db.session.delete(poll)
        if not _commit("delete", poll_id):
            return jsonify({"message": "Server error during poll deletion."}), 500

        current_app.logger.info("Poll %s deleted by %s", poll_id, current_user.username)
        return jsonify({"success": True})
