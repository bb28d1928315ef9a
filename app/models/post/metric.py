"""Post metric and rank models."""

TIMEFRAMES = ["Day", "Week", "Month", "Year", "AllTime"]

POST_METRIC_DDL = """
CREATE TABLE IF NOT EXISTS post_metric (
    post_id INTEGER NOT NULL,
    timeframe VARCHAR NOT NULL,
    view_count INTEGER DEFAULT 0,
    thumbs_up_count INTEGER DEFAULT 0,
    thumbs_down_count INTEGER DEFAULT 0,
    comment_count INTEGER DEFAULT 0,
    collected_count INTEGER DEFAULT 0,
    updated_at TIMESTAMP,
    PRIMARY KEY (post_id, timeframe)
)
"""

# Ranks are computed from this view and materialized into post_rank.
POST_RANK_LIVE_DDL = """
CREATE VIEW IF NOT EXISTS post_rank_live AS
SELECT
    post_id,
    reaction_count_day,
    reaction_count_week,
    reaction_count_all_time,
    comment_count_all_time,
    ROW_NUMBER() OVER (ORDER BY reaction_count_day DESC, post_id DESC) AS reaction_count_day_rank,
    ROW_NUMBER() OVER (ORDER BY reaction_count_week DESC, post_id DESC) AS reaction_count_week_rank,
    ROW_NUMBER() OVER (ORDER BY reaction_count_all_time DESC, post_id DESC) AS reaction_count_all_time_rank,
    ROW_NUMBER() OVER (ORDER BY comment_count_all_time DESC, post_id DESC) AS comment_count_all_time_rank
FROM (
    SELECT
        p.id AS post_id,
        SUM(CASE WHEN m.timeframe = 'Day' THEN m.thumbs_up_count + m.thumbs_down_count ELSE 0 END) AS reaction_count_day,
        SUM(CASE WHEN m.timeframe = 'Week' THEN m.thumbs_up_count + m.thumbs_down_count ELSE 0 END) AS reaction_count_week,
        SUM(CASE WHEN m.timeframe = 'AllTime' THEN m.thumbs_up_count + m.thumbs_down_count ELSE 0 END) AS reaction_count_all_time,
        SUM(CASE WHEN m.timeframe = 'AllTime' THEN m.comment_count ELSE 0 END) AS comment_count_all_time
    FROM post p
    LEFT JOIN post_metric m ON m.post_id = p.id
    WHERE p.published
    GROUP BY p.id
)
"""

POST_RANK_DDL = """
CREATE TABLE IF NOT EXISTS post_rank AS SELECT * FROM post_rank_live LIMIT 0
"""

POST_RANK_INDEXES = [
    "reaction_count_day_rank",
    "reaction_count_week_rank",
    "reaction_count_all_time_rank",
    "comment_count_all_time_rank",
]
