"""
VidTube Backend — Services Layer
=================================

Service Inventory:
    - LikeService:   toggle likes, liked-videos listing
    - TweetService:  tweet CRUD with ownership checks
    - VideoService:  listing/search, publish, fetch + view counting, owner edits
    - UploadService: multipart validation and temp-file spooling
    - MediaHost:     upload/delete contract (local disk or Cloudinary)
    - query_builder: filter → owner join → sort → paginate statements

Services raise VidTubeError subclasses; routes never catch them, the global
handlers in main.py turn them into error envelopes.
"""
