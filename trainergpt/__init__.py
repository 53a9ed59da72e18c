"""TrainerGPT - tool-calling hypertrophy coach and its evaluation harness."""

__version__ = "0.1.0"
