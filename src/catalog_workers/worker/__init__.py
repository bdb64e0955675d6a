"""Pull-based task workers for the external workflow orchestrator.

The runner claims tasks with `poll`, executes the registered handler on a
bounded thread pool and reports exactly one result per claimed task. Delivery
is at-least-once: the orchestrator redelivers a task whose result never
arrived, so handlers must tolerate duplicates.
"""
