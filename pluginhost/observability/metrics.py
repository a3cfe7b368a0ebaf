"""Prometheus metrics for the plugin reconciliation engine."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

archives_extracted_total = Counter(
    "pluginhost_archives_extracted_total",
    "Plugin archives extracted into the cache",
)
cache_evictions_total = Counter(
    "pluginhost_cache_evictions_total",
    "Cached plugin roots evicted because their archive disappeared",
)
plugin_load_failures_total = Counter(
    "pluginhost_plugin_load_failures_total",
    "Plugins that failed to load or validate",
    ["stage"],
)
plugins_registered = Gauge(
    "pluginhost_plugins_registered",
    "Plugins currently visible through the registry",
)
reconcile_duration_ms = Histogram(
    "pluginhost_reconcile_duration_ms",
    "Wall time of a full reconciliation pass",
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)
