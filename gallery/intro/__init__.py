"""Intro video configuration and routes."""
