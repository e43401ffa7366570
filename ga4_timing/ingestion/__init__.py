"""
GA4 report fetching: credentials, filter expressions, report bodies and
the HTTP client that turns ``runReport`` responses into ``MetricRow``s.

Modules
-------
credentials : service-account info loading + bearer token provider.
filters     : FieldFilter / NotExpression / AndGroup dimension filters.
queries     : TimingQuery + runReport body builders.
ga4_client  : Ga4Client (runReport, timing rows, top lists, fixture mode).
"""
