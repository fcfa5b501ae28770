"""Tool catalog, registry and execution.

Converts server tool descriptors into model function specs, tracks the
tools on offer, and resolves the tool calls a model makes.
"""
