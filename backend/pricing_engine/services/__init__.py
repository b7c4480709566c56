"""Pricing and redemption services."""
