from flask import current_app, jsonify
from sqlalchemy.exc import SQLAlchemyError

from pollhub.extensions import db
from pollhub.routes.auth import register_auth_routes
from pollhub.routes.blogs import register_blog_routes
from pollhub.routes.counties import register_county_routes
from pollhub.routes.polls import register_poll_routes
from pollhub.routes.votes import register_vote_routes
from pollhub.services.errors import PollError


def register_routes(app):
    @app.errorhandler(PollError)
    def handle_poll_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        db.session.rollback()
        current_app.logger.exception("Storage failure, transaction rolled back")
        return jsonify({"message": "Server error"}), 500

    register_auth_routes(app)
    register_poll_routes(app)
    register_vote_routes(app)
    register_blog_routes(app)
    register_county_routes(app)
