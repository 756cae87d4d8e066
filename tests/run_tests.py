#!/usr/bin/env python3
"""
Test runner for movetype.

This script runs all the unit tests in the tests/unit directory.
"""

import unittest
import sys
import os
import importlib.util
from pathlib import Path

def load_test_modules():
    """Discover and load all test modules in tests/unit directory."""
    test_dir = Path(__file__).parent / 'unit'
    test_modules = []

    for file in sorted(test_dir.glob('test_*.py')):
        module_name = file.stem
        spec = importlib.util.spec_from_file_location(module_name, file)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        test_modules.append(module)

    return test_modules

def run_standard_tests(test_modules):
    """Run tests using unittest's standard TestCase framework."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for module in test_modules:
        suite.addTests(loader.loadTestsFromModule(module))

    runner = unittest.TextTestRunner(verbosity=2)
    return runner.run(suite)

def main():
    """Load and run every unit test module."""
    # Make the package importable without installing it
    repo_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
    sys.path.insert(0, repo_root)

    test_modules = load_test_modules()
    print(f"Found {len(test_modules)} test modules")

    result = run_standard_tests(test_modules)
    return 0 if result.wasSuccessful() else 1

if __name__ == "__main__":
    sys.exit(main())
