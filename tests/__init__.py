"""
Test suite for the promotion analysis.

Tests cover:
- Validation and staircase encoding of raw rows
- Term Sets and the interaction builder
- IRLS estimates against an independent implementation
- VIF and Box-Tidwell diagnostics
- Odds ratios and likelihood-ratio comparisons
- End-to-end runs with per-operation failure isolation
"""
