"""
HERALD - Property-Based Testing Suite

Hypothesis tests for dispatch ordering, interest matching and lifecycle
phase sequencing invariants.
"""
