"""Business logic services package.

Contains the services behind a listing analysis: field normalization, image
acquisition, classifier adaptation, background archival and listing caching.
"""
