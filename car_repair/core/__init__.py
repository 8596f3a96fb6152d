"""Domain logic: status registry, queue, processing, worker, notifications."""
