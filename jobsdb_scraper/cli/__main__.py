"""Allow ``python -m jobsdb_scraper.cli`` execution."""

from jobsdb_scraper.cli.scrape_jobsdb import main

main()
