"""Outer adapters: REST API and terminal play."""
