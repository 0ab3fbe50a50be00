"""Materialized view tables. Every table is rebuildable from the event log."""

SCHEMA = """
-- Last event seq each projection has applied
CREATE TABLE IF NOT EXISTS projection_offsets (
    projection TEXT PRIMARY KEY,
    last_seq INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS queues (
    queue_id TEXT PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS questions (
    queue_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    question_text TEXT NOT NULL,
    PRIMARY KEY (queue_id, question_id)
);

CREATE TABLE IF NOT EXISTS submissions (
    submission_id TEXT PRIMARY KEY,
    queue_id TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_submissions_queue ON submissions(queue_id);

CREATE TABLE IF NOT EXISTS judges (
    judge_id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    system_prompt TEXT NOT NULL,
    target_model TEXT NOT NULL,
    active INTEGER NOT NULL
);

CREATE TABLE IF NOT EXISTS runs (
    run_id TEXT PRIMARY KEY,
    queue_id TEXT NOT NULL,
    status TEXT NOT NULL,
    planned_count INTEGER NOT NULL,
    completed_count INTEGER NOT NULL,
    failed_count INTEGER NOT NULL,
    started_at TEXT NOT NULL,
    completed_at TEXT
);

CREATE INDEX IF NOT EXISTS idx_runs_queue ON runs(queue_id);
CREATE INDEX IF NOT EXISTS idx_runs_status ON runs(status);

CREATE TABLE IF NOT EXISTS evaluations (
    evaluation_id TEXT PRIMARY KEY,
    run_id TEXT NOT NULL,
    submission_id TEXT NOT NULL,
    queue_id TEXT NOT NULL,
    question_id TEXT NOT NULL,
    judge_id TEXT NOT NULL,
    verdict TEXT NOT NULL,
    reasoning TEXT NOT NULL,
    evaluated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_evaluations_queue ON evaluations(queue_id);
CREATE INDEX IF NOT EXISTS idx_evaluations_run ON evaluations(run_id);
"""

VIEW_TABLES = ("queues", "questions", "submissions", "judges", "runs", "evaluations")
