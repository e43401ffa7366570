"""
Timing engine: converts GA4 hour × weekday traffic into ranked posting
slots and concrete upcoming instants.

Modules
-------
aggregator : score_buckets() + aggregate() — group, sum, rank, share.
projector  : project() + merge_occurrences() — buckets to future instants.
assembler  : build_recommendation() — the pure end-to-end entry point.
reporter   : write_recommendation_json() — file output.
"""
