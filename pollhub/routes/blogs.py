from flask import current_app, jsonify, request
from flask_login import login_required

from pollhub.extensions import db
from pollhub.models import BlogPost
from pollhub.routes.helpers import clean_text, request_payload
from pollhub.services.errors import NotFoundError, ValidationError
from pollhub.utils import format_timestamp


def _serialize_post(post):
    return {
        "id": post.id,
        "title": post.title,
        "content": post.content,
        "created_at": format_timestamp(post.created_at),
    }


def _get_post(post_id):
    post = db.session.get(BlogPost, post_id)
    if post is None:
        raise NotFoundError("Blog post not found")
    return post


def register_blog_routes(app):
    @app.route("/api/blogs")
    def list_posts():
        posts = BlogPost.query.order_by(
            BlogPost.created_at.desc(), BlogPost.id.desc()
        ).all()
        return jsonify([_serialize_post(post) for post in posts])

    @app.route("/api/blogs/<int:post_id>")
    def get_post(post_id):
        return jsonify(_serialize_post(_get_post(post_id)))

    @app.route("/api/blogs", methods=["POST"])
    @login_required
    def create_post():
        data = request_payload(request)
        title = clean_text(data.get("title"))
        content = clean_text(data.get("content"))
        if not title or not content:
            raise ValidationError("Title and content are required.")

        post = BlogPost(title=title, content=content)
        db.session.add(post)
        db.session.commit()

        current_app.logger.info("Blog post %s created", post.id)
        return jsonify(_serialize_post(post)), 201

    @app.route("/api/blogs/<int:post_id>", methods=["PUT"])
    @login_required
    def update_post(post_id):
        post = _get_post(post_id)
        data = request_payload(request)

        for field in ("title", "content"):
            if field in data:
                value = clean_text(data.get(field))
                if not value:
                    raise ValidationError(f"{field} cannot be empty.")
                setattr(post, field, value)

        db.session.commit()
        return jsonify(_serialize_post(post))

    @app.route("/api/blogs/<int:post_id>", methods=["DELETE"])
    @login_required
    def delete_post(post_id):
        post = _get_post(post_id)
        db.session.delete(post)
        db.session.commit()
        return jsonify({"success": True})
