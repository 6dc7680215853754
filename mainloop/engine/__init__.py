"""Loop engine: scheduler, hosts, settings and logging."""
