"""Workers package: fire-and-forget task queues and background jobs."""
