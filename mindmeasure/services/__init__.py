"""Mind Measure services."""
