# config_local.example.py

"""
Example local overrides.

Usage:
  1) Copy this file to `config_local.py`
  2) Adjust values for your machine
  3) Never commit `config_local.py` (it is gitignored)

Prefer `.env` for everything else. Only the switches below are read.
"""

# Example: run headless (rollover service only, no console)
# CONSOLE_ENABLED = False

# Example: inspect data without moving unfinished tasks forward
# ROLLOVER_ENABLED = False

# Example: open another user's documents in the local store
# USER_ID = "alice"
