"""
quizdeck: spaced repetition scheduling for multiple-choice question banks.

Packages:
- core: Shared domain models and errors
- scheduling: Strategies, selector, state store, session tracking
- content: Question bank loading
- study: Orchestration used by the CLI
"""

__version__ = "0.1.0"
