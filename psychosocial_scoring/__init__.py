"""
psychosocial_scoring — scoring and classification engine for occupational
psychosocial questionnaires.

Pipeline
--------
    InstrumentRegistry → normalize → aggregate → classify → rollup
        → recommendations → reporting / export

Start with ``scoring.engine.ScoringEngine`` for one-call assessments, or use
the individual modules under ``scoring/`` directly.
"""

__version__ = "0.1.0"
