"""
Remote Sources
==============

Providers that list and fetch repository files from remote hosts.
"""

from __future__ import annotations

from .github import GitHubSourceProvider, RepositoryRef, parse_repository_url

__all__ = ["GitHubSourceProvider", "RepositoryRef", "parse_repository_url"]
