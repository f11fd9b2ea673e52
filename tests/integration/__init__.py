"""
Integration tests for the reactor simulator.

These tests verify that the configuration, simulation loop, status
monitor and manager work together as a complete system. They run the
real simulation thread and are slower than unit tests.

Running Integration Tests:
    pytest tests/integration/                    # All integration tests
    pytest tests/integration/ -m integration     # Tagged as integration
"""
