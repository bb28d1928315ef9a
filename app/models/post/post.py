"""Post model - source rows owned by the content subsystem."""

POST_DDL = """
CREATE TABLE IF NOT EXISTS post (
    id INTEGER PRIMARY KEY,
    user_id INTEGER NOT NULL,
    title VARCHAR,
    content VARCHAR,
    published BOOLEAN DEFAULT TRUE,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
)
"""
