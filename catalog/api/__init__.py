"""
REST API for related whiskies.
"""
