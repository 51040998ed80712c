"""Reusable patterns for building FlowBoard verticals.

Each module demonstrates a self-contained pattern that can be adapted
to any domain: repository layers with ownership isolation and
dataclass domain configuration.
"""
