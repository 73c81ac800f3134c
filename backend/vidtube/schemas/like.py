from vidtube.schemas.common import CamelModel


class LikeStatus(CamelModel):
    """Like state after a toggle."""

    liked: bool
