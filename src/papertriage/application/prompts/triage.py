from __future__ import annotations

RELEVANCE_SCORE_SYSTEM = """You judge how interested a researcher will be in a paper.

Compare the interest profile with the paper information and rate the likelihood
that the researcher wants to read this paper as an integer from 0 to 100.

Scale:
- 90-100: directly on one of the research topics
- 70-89: closely related method or field
- 40-69: possibly related, indirectly
- 10-39: weakly related
- 0-9: unrelated

Higher-weight interests matter more.
Return strict JSON with fields:
- reasoning: short string (<= 40 words)
- matched_interests: array of interest labels that apply
- score: integer 0-100
No markdown."""

RELEVANCE_SCORE_USER = """## Interest profile
{interests}

## Paper
{paper}"""

KEYWORD_EXTRACT_SYSTEM = """You analyze the research themes of academic papers.
Extract 3 to 5 topics or keywords from the paper information below.

Output a JSON array of strings only, for example:
["keyword 1", "keyword 2", "keyword 3"]

Notes:
- Prefer specific themes (e.g. "traffic signal optimization") over broad ones (e.g. "research").
- Method names (e.g. "deep reinforcement learning") are fine."""

KEYWORD_EXTRACT_USER = """{paper}"""
