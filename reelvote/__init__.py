"""ReelVote — ranked-choice voting engine for movie surveys and quick polls.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""

__version__ = "1.0.0"
