"""LeetReady: synchronized solve-status cache and topic readiness scoring."""
