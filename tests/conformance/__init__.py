"""
Conformance Test Suite

This suite defines the NORMATIVE behavior of the engine.
Any compliant implementation MUST pass these tests.

The tests are organized by invariant:
1. atomicity.py - All-or-nothing operation semantics
2. reentrancy.py - No mutating call can start inside another
3. solvency_invariant.py - Every indebted account stays healthy and
   custody always matches the recorded positions
4. determinism.py - Identical call sequences reach identical state

These tests use hypothesis for property-based testing.
"""
