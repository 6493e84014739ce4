"""Sample resources shared by the test suite."""
