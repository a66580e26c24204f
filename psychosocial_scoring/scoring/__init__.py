"""
Scoring engine: raw answers → normalized answers → category scores →
classifications → partitioned rollups.

Modules
-------
errors      : AnswerValidationError, UnknownCategoryError, UnknownInstrumentError.
normalizer  : normalize() + normalize_response() — favorable-high values.
aggregator  : CategoryScore + aggregate_category() + overall_average().
classifier  : classify_risk() + classify_health_impact() + classify_response().
rollup      : AggregateReport + rollup() + partition helpers + rank_categories().
engine      : ScoringEngine facade — one call from responses to a full result.

Everything here is pure and synchronous; no I/O.
"""
