"""Report-ready notifications."""
