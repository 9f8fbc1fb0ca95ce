"""AI helpers: data-entry assistant, mutation analysis and bird identification."""
