"""
Execution event notifications app.

Publishes execution lifecycle events to the event service and merges
application-level notification settings into pipeline executions.
"""
