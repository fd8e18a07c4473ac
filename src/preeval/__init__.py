"""Pre-evaluation gateway: loan-modality eligibility and parameter enrichment."""

__version__ = "0.1.0"
