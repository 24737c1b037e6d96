"""
lowmain - a token-efficient, agent-first command line for Neo4j.

Every command prints exactly one JSON envelope on stdout and exits 0 on
success or 1 on failure.
"""

__version__ = "0.1.0"
