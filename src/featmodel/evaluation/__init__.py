"""Evaluation metrics and model reports."""
