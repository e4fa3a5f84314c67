# Task board: projects, status columns, and the drag/transition engine
#
# Components:
#   schema.py    - Data model (Task, Project, Column, User, Attachment, Status, Role)
#   store.py     - SQLite record store (the durable owner of record)
#   board.py     - Board state cache keyed by project + column partitioning
#   guard.py     - Role capability checks (column changes, field edits)
#   gestures.py  - Drag sensors and the drag state machine
#   sync.py      - Write-through of completed drags, reconciliation
#   events.py    - Subscriber bus for board events
#   editing.py   - Form-style task edits and work notes
#   stats.py     - Admin dashboard aggregates and resource audit
#   view.py      - One mounted board: state, sensors and sync wired per user
#   config.py    - YAML configuration
#   fixtures.py  - Demo users and projects
