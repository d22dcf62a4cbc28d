"""Query compilation (@tag:, @time, user regex) and fail-open search/highlight."""
