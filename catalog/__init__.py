"""
Catalog Django application.

This app holds the whisky catalog models and the related-whisky engine
that keeps each whisky's "related whiskies" list fresh as the catalog changes.
"""
