"""Job-card extraction from JobsDB listing HTML using BeautifulSoup.

Each listing page renders one ``article[data-testid="job-card"]`` per job.
Individual fields are tagged with ``data-automation`` attributes; any of
them may be absent on a given card (e.g. no salary shown).
"""

from __future__ import annotations

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from jobsdb_scraper.models.job import JobRecord

JOB_CARD_SELECTOR = '[data-testid="job-card"]'

_FIELD_AUTOMATION = {
    "title": "jobTitle",
    "company": "jobCompany",
    "location": "jobLocation",
    "salary": "jobSalary",
    "classification": "jobClassification",
    "teaser": "jobShortDescription",
    "posted": "jobListingDate",
}


def _field_text(card: Tag, automation: str) -> str | None:
    node = card.select_one(f'[data-automation="{automation}"]')
    if node is None:
        return None
    text = node.get_text(" ", strip=True)
    return text or None


def _parse_card(card: Tag, page_url: str) -> JobRecord | None:
    fields = {name: _field_text(card, automation) for name, automation in _FIELD_AUTOMATION.items()}
    title = fields.pop("title")
    if not title:
        return None

    url = None
    link = card.select_one('a[data-automation="jobTitle"]') or card.select_one("a[href]")
    if link is not None and link.get("href"):
        url = urljoin(page_url, str(link["href"]))

    job_id = card.get("data-job-id")
    return JobRecord(
        job_id=str(job_id) if job_id else None,
        title=title,
        url=url,
        **fields,
    )


def parse_job_cards(html: str, page_url: str) -> list[JobRecord]:
    """Return one :class:`JobRecord` per job card in *html*.

    Cards without a title are skipped; relative links are resolved against
    *page_url*.
    """
    soup = BeautifulSoup(html, "html.parser")
    jobs: list[JobRecord] = []
    for card in soup.select(JOB_CARD_SELECTOR):
        job = _parse_card(card, page_url)
        if job is not None:
            jobs.append(job)
    return jobs
