"""Pydantic models for exchange wire payloads.

Only the fields the adapters read are declared; unknown fields are ignored.
Derived values such as order totals are deliberately not modelled.
"""
