"""BerburuMobil listing analysis package.

Backend for the free AI scoring feature of a used-car inspection service in
Indonesia. Takes an OLX or Mobil123 listing URL, scrapes the listing, picks
representative photos and prepares them for a vision classifier.

The application follows a modular architecture with separate concerns for:
- URL classification and marketplace-specific scraping
- Static HTML extraction with a headless browser fallback
- Field normalization into a canonical Listing record
- Image candidate resolution, batched acquisition and archival
- HTTP entry point and analysis orchestration
"""
