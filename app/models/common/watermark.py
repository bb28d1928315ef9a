"""Job watermark table - last successful run start per named job."""

WATERMARK_DDL = """
CREATE TABLE IF NOT EXISTS job_watermark (
    job_key VARCHAR PRIMARY KEY,
    last_run_at TIMESTAMP NOT NULL
)
"""
