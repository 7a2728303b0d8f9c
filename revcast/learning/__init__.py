"""
RevCast Learning Loop.

Components:
- schemas: Observations, insights, historical signals
- aggregator: Order-independent cohort statistics
- signals: Relevance, confidence boost, indicators
- service: Batch refresh and lookups
- scheduler: APScheduler job wrapper
"""
