"""
VidTube Backend — API Routes Package
=====================================

Route Inventory (prefix /api/v1 unless noted):
    - likes.py:   POST /likes/toggle/v/{videoId}, /toggle/c/{commentId},
                  /toggle/t/{tweetId}; GET /likes/videos
    - tweets.py:  POST /tweets; GET /tweets/user/{userId};
                  PATCH, DELETE /tweets/{tweetId}
    - videos.py:  GET, POST /videos; GET, PATCH, DELETE /videos/{videoId};
                  PATCH /videos/toggle/publish/{videoId}
    - health.py:  GET /health            (no prefix, not enveloped)
    - media.py:   GET /media/{path}      (no prefix, local media host only)

Routes stay thin: read the request, call one service method, wrap the result
in ApiResponse with the right status code.
"""
