"""
Conformance Test Suite

Property-based checks of the contract invariants that every sequence of
transitions, commands and snapshots must preserve:
1. Amounts owed are never negative; payment due never exceeds total owed
2. Base interest never decreases with time
3. Closed contracts carry no debt, before and after a reload
4. Rejected commands never mutate the contract or move funds

These tests use hypothesis for property-based testing.
"""
