"""HTTP API package.

Contains the aiohttp entry point and the orchestration of a full listing
analysis: scraping, image acquisition, classification and archival.
"""
