"""Test helpers shared by the pytest suite."""
