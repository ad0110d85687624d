"""Compatibility kernel: schema model, type index, analyzer and verdicts."""
