"""Worker runtime: bounded, rate-limited consumption of the job queue."""
