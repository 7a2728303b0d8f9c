"""
RevCast — Pricing Decision Lifecycle & Outcome Learning.

Architecture:
    revcast/
    ├── config.py        # pydantic-settings configuration
    ├── errors.py        # Typed error taxonomy
    ├── logging_config.py  # structlog setup
    ├── scheduler_main.py  # learning refresh process
    ├── db/              # SQLAlchemy engine, document tables, repositories
    ├── decisions/       # Decision aggregate, version ledger, status log, episode
    ├── scenarios/       # Scenario sets, baseline invariant, delta calculator
    ├── outcomes/        # Measurable outcomes, KPI math, correction chain
    └── learning/        # Cross-decision aggregates, signals, batch scheduler

Module Boundaries:
    - Verdicts and scenarios are produced by an external inference service;
      RevCast validates and stores them, it never calls a model
    - Episode status is derived on every read, never stored
    - Histories (context, verdict, status, outcomes) are append-only
    - Every read-modify-write carries a revision token

Data Flow:
    Inference result → Decision (v1) → Context/Verdict versions
    → Scenario set (balanced baseline) → Chosen path → Measurable outcome
    → Learning aggregates → Historical signals for future verdicts

Version: 1.0.0
"""

__version__ = "1.0.0"
