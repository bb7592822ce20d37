"""
Property-based testing using Hypothesis.

This package contains property tests that verify mathematical invariants
hold across randomly generated inputs.

Modules:
    test_factorization_properties: Correlation factorization invariants
    test_simulation_properties: Zero-volatility exactness and variance bounds
"""
