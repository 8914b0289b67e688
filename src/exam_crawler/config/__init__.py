"""Configuration for the exam crawler."""
