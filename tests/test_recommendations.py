"""
Test runner for next-concept recommendation BDD scenarios.

This file is the entry point for pytest-bdd to discover and run
the Gherkin scenarios from recommendations.feature.

Run with:
    pytest test_recommendations.py -v
"""

from pytest_bdd import scenarios

# Import step definitions - this registers all steps
from step_defs.recommendation_steps import *

# Link feature file to this test module
scenarios("../features/recommendations.feature")
