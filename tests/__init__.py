"""Test package for the assistive micro-simulations.

Engine tests drive time through a fake clock and the Scheduler, so no real
waiting happens. UI smoke tests run headlessly using pygame's dummy video and
audio drivers. To run these tests, execute ``pytest`` from the project root.
"""
