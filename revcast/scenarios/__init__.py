"""
RevCast Scenarios.

Components:
- schemas: Scenario items, sets, delta values
- acceptance: Normalisation and single-baseline validation
- delta: Range parsing, baseline deltas, confidence/risk labels
- service: Accept sets, apply the chosen path
"""
