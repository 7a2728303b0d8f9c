"""
RevCast Decision Aggregate.

Components:
- schemas: Decision, context/verdict documents, version records
- ledger: Pure create / update-context / regenerate-verdict operations
- context: User > workspace > inferred context resolution
- status: Status transition log with optional whitelist
- episode: Derived lifecycle label (draft → outcome_saved)
- service: Persistence with revision checks
"""
