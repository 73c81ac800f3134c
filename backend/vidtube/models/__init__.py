# Importing every model registers it on Base.metadata (used by Alembic and
# by the test suite's create_all)
from vidtube.models.comment import Comment
from vidtube.models.like import Like, LikeSubject
from vidtube.models.tweet import Tweet
from vidtube.models.user import User
from vidtube.models.video import Video

__all__ = ["Comment", "Like", "LikeSubject", "Tweet", "User", "Video"]
