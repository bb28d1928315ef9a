"""Queue tables - forced metric recomputation and pending search index updates."""

METRIC_UPDATE_QUEUE_DDL = """
CREATE TABLE IF NOT EXISTS metric_update_queue (
    type VARCHAR NOT NULL,
    id INTEGER NOT NULL,
    queued_at TIMESTAMP NOT NULL,
    PRIMARY KEY (type, id)
)
"""

SEARCH_INDEX_UPDATE_QUEUE_DDL = """
CREATE TABLE IF NOT EXISTS search_index_update_queue (
    index_name VARCHAR NOT NULL,
    id INTEGER NOT NULL,
    action VARCHAR NOT NULL,
    queued_at TIMESTAMP NOT NULL,
    PRIMARY KEY (index_name, id)
)
"""
