"""Thin client for the helpdesk API."""
