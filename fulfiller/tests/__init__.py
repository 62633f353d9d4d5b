"""fulfiller.tests: see the repository-root conftest.py for shared fixtures."""
