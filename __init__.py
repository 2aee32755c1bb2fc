"""HomeMinder Recommendations - Cloud Functions.

Python Cloud Functions that turn a home's location into maintenance
guidance:
- ZIP code cache of historical weather and climate data (Firestore)
- Historical weather resolution (Visual Crossing)
- Climate estimation and storm frequency classification
- Local regulation lookup and compliance task generation
- Prompt building for AI maintenance task generation
"""

__version__ = "1.0.0"
