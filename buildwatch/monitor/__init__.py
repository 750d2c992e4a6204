"""buildwatch monitor — projection, rendering and the live dashboard.

Modules
-------
projection
    ``DashboardProjection`` reduces task snapshots into groups, tag buckets
    and counters.  Stateless; recomputed on every render.
renderer
    ``DashboardRenderer`` turns a ``DashboardView`` into a Rich ``Text``
    block.
errors
    ``ErrorReporter`` dumps captured stdout/stderr of failed tasks.
transitions
    ``TransitionLogger`` prints one line per task state change.
dashboard
    ``BuildDashboard`` subscribes to a task manager and drives the rest.
"""
