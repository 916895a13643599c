"""Skill battle models."""
