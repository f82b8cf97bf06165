"""
Subsidy Matching Service

Ranks French and European public funding programs against a company
profile: deterministic pre-scoring with hard filters, sector-gated boosts,
and optional AI re-ranking.
"""

__version__ = "1.0.0"
__description__ = "Subsidy discovery matching and scoring engine"
