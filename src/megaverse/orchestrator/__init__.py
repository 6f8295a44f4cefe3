"""Scheduling, retry, and reconciliation engine for megaverse builds.

A build is a stream of idempotent remote placements. The limiter bounds how
many run at once; the row (or batch) barrier bounds how many are outstanding.
"""
