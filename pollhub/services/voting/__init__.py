from pollhub.services.voting.ballots import VoteService
from pollhub.services.voting.tally import live_leaderboard, tally_poll

__all__ = [
    "VoteService",
    "live_leaderboard",
    "tally_poll",
]
