"""
Task subsystem.

Components:
- task_models.py: data structures (Task, PlannerSettings, DurationUnit, StoreEvent)
- task_stats.py: derived statistics (totals, top tag, 7-day trend, weekly cap)
- task_store.py: in-memory authoritative store with a synchronous change feed
"""
