"""
Multi-tenant authorization engine.

Submodules:
- roles: role hierarchy and caller snapshots
- decisions: allow/deny results with grant and reason codes
- permissions: per-action decision functions
- visibility: listing predicates
- tenant: active institution resolution and switching
- lifecycle: job status state machine and notification triggers
"""
