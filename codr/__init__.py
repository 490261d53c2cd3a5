"""
Codr: AI-assisted app generation.

Turns a short workflow description into a deployable application by matching
it against a catalog of templates or generating it phase by phase with LLMs,
then building and publishing the result under a per-session preview URL.
"""

__version__ = "1.0.0"
__author__ = "Codr Team"
