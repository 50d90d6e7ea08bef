"""Workflows: publish, consume, and discovery.

Each workflow takes an explicit ``IpackContext`` instead of reading the
process working directory or a global registry.
"""
