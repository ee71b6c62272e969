"""Meeting cost domain -- validation, cost formula, aggregation and rules.

Provides the pure core (validator, cost calculator, stats aggregator,
rule engine) plus the SQLAlchemy model and owner-scoped repository that
persist meetings with their derived cost.
"""
