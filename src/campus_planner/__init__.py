"""Campus planner: task validation, regex search and a reactive in-memory task store."""
