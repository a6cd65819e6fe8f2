from pollhub.models.blog_post import BlogPost
from pollhub.models.competitor import Competitor
from pollhub.models.poll import Poll
from pollhub.models.user import User
from pollhub.models.vote import Vote

__all__ = [
    "User",
    "Poll",
    "Competitor",
    "Vote",
    "BlogPost",
]
