"""
Analyses over a user's training: the rule-based checks the background jobs
run and the mesocycle planner behind createProgram.
"""
