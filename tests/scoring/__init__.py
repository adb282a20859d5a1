"""
Scoring Tests

Test Modules:
- test_scoring_engine: weighted scores, breakdowns, health bands and reports
- test_weights: the component weight table
- test_history: stored validation runs used for trends
"""
