"""Core data types shared across the pipeline."""
