"""
Tests for the study analytics engine
"""
