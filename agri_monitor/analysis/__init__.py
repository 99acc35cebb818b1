"""Quality tiers, threshold alerts and the classification report.

- quality: Quality tier rules and breakdown counts
- alerts: Vegetation, radar and climate threshold rules
- classifier: Builds a ClassificationReport from stored observations
"""
