"""
RevCast Outcome Tracking.

Components:
- schemas: Measurable outcomes, KPIs, inline outcome entries
- kpis: Delta math, plan gating, KPI seeding
- corrections: Effective outcomes and correction chains
- tracker: Outcome updates and the inline log
"""
