"""Import pipeline: normalizers, pasted-text parsing, transform and enrichment."""
