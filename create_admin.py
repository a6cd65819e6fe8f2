import sys

from pollhub import create_app
from pollhub.extensions import db
from pollhub.models import User
from pollhub.routes.auth import MIN_PASSWORD_LENGTH, hash_password


def create_admin(username, email, password):
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SystemExit(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long."
        )

    app = create_app()
    with app.app_context():
        if User.query.filter_by(username=username).first():
            raise SystemExit(f"Admin {username} already exists.")

        db.session.add(
            User(
                username=username,
                email=email.strip().lower(),
                password_hash=hash_password(password),
            )
        )
        db.session.commit()
        print(f"Created admin {username}")


if __name__ == "__main__":
    if len(sys.argv) != 4:
        raise SystemExit("usage: python create_admin.py USERNAME EMAIL PASSWORD")
    create_admin(*sys.argv[1:])
