from __future__ import annotations

import asyncio

from domain.models import PageState
from domain.services import PageStateClassifier
from test.fixtures import GREENHOUSE_URL, load_html
from test.mocks import FakeDocument


def _classify(html: str, url: str = "https://jobs.example.test/apply") -> PageState:
    return asyncio.run(PageStateClassifier().classify(FakeDocument(html, url=url)))


def test_application_form_is_recognised() -> None:
    assert _classify(load_html("application_form.html"), GREENHOUSE_URL) is PageState.APPLICATION_FORM


def test_listing_with_hidden_form_is_a_listing() -> None:
    state = _classify(load_html("listing.html"), "https://careers.example.test/job/123")
    assert state is PageState.LISTING


def test_listing_after_apply_click_becomes_application_form() -> None:
    page = FakeDocument(load_html("listing.html"), url="https://careers.example.test/job/123")
    asyncio.run(page.click(page.find(".apply-link")))

    report = asyncio.run(PageStateClassifier().inspect(page))
    assert report.state is PageState.APPLICATION_FORM
    assert report.application_markers >= 2


def test_name_and_email_are_enough_for_a_form() -> None:
    html = """
    <html><body>
      <input name="fullName" type="text">
      <input name="contact" type="email">
    </body></html>
    """
    assert _classify(html, "https://example.test/careers/x") is PageState.APPLICATION_FORM


def test_account_creation_page() -> None:
    page = FakeDocument(load_html("account_creation.html"))
    report = asyncio.run(PageStateClassifier().inspect(page))

    assert report.state is PageState.ACCOUNT_CREATION
    assert report.account_creation
    assert report.requires_human


def test_job_url_without_markers_is_a_listing() -> None:
    html = "<html><body><h1>Backend Engineer</h1><p>About the role</p></body></html>"
    assert _classify(html, "https://careers.example.test/job/123") is PageState.LISTING


def test_unknown_page_requires_human() -> None:
    page = FakeDocument(load_html("login.html"))
    report = asyncio.run(PageStateClassifier().inspect(page))

    assert report.state is PageState.UNKNOWN
    assert report.requires_human


def test_classifier_keeps_no_state_between_calls() -> None:
    classifier = PageStateClassifier()
    form = FakeDocument(load_html("application_form.html"), url=GREENHOUSE_URL)
    login = FakeDocument(load_html("login.html"))

    assert asyncio.run(classifier.classify(form)) is PageState.APPLICATION_FORM
    assert asyncio.run(classifier.classify(login)) is PageState.UNKNOWN
    assert asyncio.run(classifier.classify(form)) is PageState.APPLICATION_FORM


_SEARCH_BOXES = """
  <input type="text" placeholder="Search jobs by title">
  <input type="text" placeholder="Search jobs by team">
  <input type="text" placeholder="Search jobs by location">
"""
_APPLICATION_INPUTS = """
  <input name="first_name" type="text">
  <input name="last_name" type="text">
  <input name="contact_email" type="email">
  <input name="resume" type="file">
"""


def test_marker_counts_decide_listing_versus_form() -> None:
    url = "https://careers.example.test/openings"
    listing = asyncio.run(
        PageStateClassifier().inspect(
            FakeDocument(f"<html><body>{_SEARCH_BOXES}</body></html>", url=url)
        )
    )
    assert listing.state is PageState.LISTING
    assert (listing.listing_markers, listing.application_markers) == (3, 0)

    form = asyncio.run(
        PageStateClassifier().inspect(
            FakeDocument(f"<html><body>{_SEARCH_BOXES}{_APPLICATION_INPUTS}</body></html>", url=url)
        )
    )
    assert form.state is PageState.APPLICATION_FORM
    assert form.application_markers == 4
