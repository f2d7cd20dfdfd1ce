"""Command-line entry points for jobsdb-scraper.

- ``python -m jobsdb_scraper.cli max-pages <region>`` reports how many
  listing pages a region currently has.
- ``python -m jobsdb_scraper.cli scrape -r <region> ...`` runs a full
  multi-worker scrape into one JSON file.
"""
