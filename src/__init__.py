"""
WebAudit AI

A page audit engine that:
1. Collects performance, SEO, accessibility and content signals
2. Scores four modules with threshold penalties and aggregates a health score
3. Enriches reports with AI insights and NLP (with fallbacks at every step)
4. Compares a site against its competitors in the background
"""

__version__ = "0.1.0"
