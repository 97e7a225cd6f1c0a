# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "HESAB_APP_NAME": "App display name (default: hesab).",
    "HESAB_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Session
    "HESAB_USER_ID": "User whose documents are opened (default: local).",
    # Switches
    "HESAB_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    "HESAB_ROLLOVER_ENABLED": "Run the start/midnight/visibility carry-over service (default: true).",
    # Rollover timing
    "HESAB_ROLLOVER_INTERVAL_SECONDS": "Repeat interval after the first midnight check (default: 86400).",
    "HESAB_IDLE_VISIBILITY_SECONDS": (
        "Console idle time after which the app counts as in the background (default: 300)."
    ),
    # Paths (gitignored)
    "HESAB_DATA_DIR": "Local data directory (default: .local/hesab).",
    "HESAB_DB_PATH": "Document store SQLite path (default: <data_dir>/hesab.sqlite3).",
    "HESAB_CHECKPOINT_PATH": "Rollover checkpoint JSON path (default: <data_dir>/checkpoint.json).",
}
