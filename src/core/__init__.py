"""Core domain package for flowtail.

Core contains parsing, flow classification, the flow registry, filters and
projections without any transport or UI code, keeping the logic portable.
"""
