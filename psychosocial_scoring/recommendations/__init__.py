"""
Recommendation engine: turns classified categories into an ordered
action plan with human-readable advice.

Modules
-------
catalog  : load_recommendation_catalog() — JSON → validated RecommendationCatalog,
           checked against the instrument's category set at load time.
selector : select_recommendation() + select_guidance() + build_action_plan()
           — pure lookups and ordering, no I/O.
"""
