"""
Foosrank - Table Soccer Player Rankings

Collects player rankings and profiles from the international (ITSF) and
national (DTFB) federation websites and merges them into one player store.

Main components:
- scrape: Page extractors for ITSF and DTFB, bounded concurrent fetching
- players: Player records and the synchronized player store
- services: Ranking ingestion jobs for both sources
- tasks: Progress tracking and single-flight job supervision
- db: SQLAlchemy persistence for player documents and images
- web: FastAPI routes for player data and job control
"""

__version__ = "0.3.0"
