"""Scenario-based evaluation harness for the coaching agent."""
