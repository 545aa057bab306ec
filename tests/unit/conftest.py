"""Unit test configuration - shared fixtures and environment isolation"""

import pytest

from passage_retrieval.models import Section, SourceSection

RETRIEVAL_ENV_VARS = (
    "RETRIEVAL_K1",
    "RETRIEVAL_B",
    "RETRIEVAL_STOP_WORD_POLICY",
    "RETRIEVAL_STEMMING",
    "RETRIEVAL_HEADING_REPEAT",
    "RETRIEVAL_POSITION_WINDOW",
    "RETRIEVAL_TOP_K",
)


@pytest.fixture(autouse=True)
def isolate_retrieval_env(monkeypatch):
    """
    Start every test without RETRIEVAL_* variables.

    setenv() first so monkeypatch records the original state; variables
    that load_dotenv() writes during a test are then removed on teardown.
    """
    for name in RETRIEVAL_ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)


@pytest.fixture
def pricing_sections():
    """Two sections where only one has the query term in its heading"""
    return [
        Section(id="pricing", heading="Pricing", text="Our plans cost $10/month", position=0),
        Section(id="features", heading="Features", text="Pricing details are on the plans page", position=1),
    ]


@pytest.fixture
def help_page_sections():
    """A small help page with mixed headings"""
    return [
        Section(id="intro", heading="Introduction", text="Acme widgets keep your desk tidy.", position=0),
        Section(id="install", heading="Installing the widget", text="Unpack the widget and mount it on the wall.", position=1),
        Section(id="refunds", heading="Refund policy", text="Widgets can be returned within 30 days.", position=2),
        Section(id="misc", heading="", text="Contact support for anything else about the widget.", position=3),
        Section(id="it", heading="IT requirements", text="Your IT team must allow the widget app.", position=4),
    ]


@pytest.fixture
def example_documents():
    """Three documents from different sites"""
    return [
        (
            "d1",
            "https://www.example.com/a",
            "Example",
            [
                SourceSection(heading="Widgets", content="The blue widget ships worldwide."),
                SourceSection(heading="Shipping", content="Orders leave the warehouse daily."),
            ],
        ),
        (
            "d2",
            "https://docs.widgets.org/guide",
            "Widget Guide",
            [
                SourceSection(heading="Setup", content="Attach the widget bracket with two screws."),
            ],
        ),
        (
            "d3",
            "https://news.site.net/story",
            "Gadget News",
            [
                SourceSection(heading="Gadgets", content="New gadget prices announced today."),
            ],
        ),
    ]
