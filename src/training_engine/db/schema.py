"""Database schema for training load data."""

SCHEMA = """
-- Athletes known to the engine
CREATE TABLE IF NOT EXISTS athletes (
    id TEXT PRIMARY KEY,
    name TEXT,
    has_active_program INTEGER DEFAULT 0,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Logged training sessions
CREATE TABLE IF NOT EXISTS training_sessions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    athlete_id TEXT NOT NULL,
    date TEXT NOT NULL,
    duration_min REAL NOT NULL,
    intensity TEXT,
    completed INTEGER DEFAULT 1,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (athlete_id) REFERENCES athletes(id)
);

CREATE INDEX IF NOT EXISTS idx_sessions_athlete_date
    ON training_sessions(athlete_id, date);

-- Daily smoothed load (one row per athlete per day)
CREATE TABLE IF NOT EXISTS training_load_samples (
    athlete_id TEXT NOT NULL,
    date TEXT NOT NULL,
    daily_load REAL NOT NULL,
    acute_load REAL NOT NULL,
    chronic_load REAL NOT NULL,
    ratio REAL NOT NULL,
    zone TEXT NOT NULL,
    injury_risk TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (athlete_id, date)
);
"""
