"""Post event model - append-only analytics events."""

POST_EVENT_DDL = """
CREATE TABLE IF NOT EXISTS post_event (
    post_id INTEGER NOT NULL,
    user_id INTEGER,
    kind VARCHAR NOT NULL,
    created_at TIMESTAMP NOT NULL
)
"""

POST_EVENT_KINDS = ["View", "ThumbsUp", "ThumbsDown", "Comment", "Collect"]
