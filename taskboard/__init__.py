# Task board: task storage, status handling, and board rendering
#
# Components:
#   schema.py  - Data model (Task, TaskStatus)
#   store.py   - SQLite persistence layer
#   service.py - Validation and status changes in front of the store
#   board.py   - Groups tasks into the five board columns
#   csrf.py    - Anti-forgery tokens for state-changing requests
#   config.py  - YAML/env configuration
