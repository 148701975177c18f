"""
Rewatch Pattern Matcher Package.

Glob pattern compilation and matching of root-relative paths.
Requires Python 3.11+.
"""

from matcher.glob_matcher import GlobMatcher, compile_pattern

__all__ = ["GlobMatcher", "compile_pattern"]
