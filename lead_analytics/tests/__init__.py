'''
Lead Analytics Test Suite

Test Modules:
-------------
- test_metrics.py: Rounding policy, percentages, period-over-period change
- test_time_range.py: Default windows, previous period, range validation
- test_bucketing.py: Bucket coverage, half-open assignment, labels
- test_aggregation.py: Group-by counts, ties, sentinel keys, top-N totals
- test_funnel.py: Conversion rates, drop-off, inconsistent stages
- test_heatmap.py: 168-cell grid, ordering, timezone-local weekday/hour
- test_cost.py: Budget projection and billing period position
- test_ranking.py: Segment ranking, estimators, trend classification
- test_timeline.py: Daily metrics and per-period cost series (pandas)
- test_dashboard.py: Every dashboard view over the shared sample data
- test_record_queries.py: Parameterized SQL filter clauses
- test_record_source.py: asyncpg record source against a mock pool
- test_api.py: FastAPI endpoints, response contract and error mapping

Running Tests:
--------------
    pytest lead_analytics/tests/ -v

See conftest.py for shared fixtures and the sample data table.
'''
