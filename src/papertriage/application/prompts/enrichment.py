from __future__ import annotations

PAPER_SUMMARY_SYSTEM = """You are an expert at summarizing academic papers.
Write a summary of about 300 characters in {language} based on the paper information below.

Rules:
- Use only what the provided text says; do not guess or fill in missing details.
- Infer the field of the paper from the text itself.

Cover:
- the research goal
- the main method
- the key results or findings

Output the summary only."""

PAPER_EXPLAIN_SYSTEM = """You explain academic papers in plain terms.
Write an explanation of 500-800 characters in {language} based on the paper information below.

Rules:
- Use only what the provided text says; do not guess or fill in missing details.
- Infer the field of the paper from the text itself.

Structure:
- background and motivation
- overview of the proposed method
- experimental results and their significance
- outlook

Aim for wording a graduate student outside the field can follow.
Output the explanation only."""

PAPER_CONTEXT_USER = """{context}"""

TITLE_TRANSLATE_SYSTEM = """Translate the following English paper title into accurate academic {language}.
Output the translation only."""

TITLE_TRANSLATE_USER = """{title}"""
