"""Shared fixtures."""

import pytest

from blog_search.models import Document, Section


@pytest.fixture
def documents() -> list[Document]:
    """Create a small set of blog documents.

    Returns:
        Documents in site order.
    """
    return [
        Document(
            path="/docs/composable-views",
            title="Composable Views in Rails",
            sections=(
                Section(heading="Composable Views in Rails", body="Building views from small parts.", anchor=""),
                Section(heading="Intro", body="Composable views in rails keep templates small."),
                Section(heading="Partials", body="Partials are the old way. Partials partials partials."),
            ),
        ),
        Document(
            path="/docs/t-struct-in-context",
            title="T::Struct in Context",
            sections=(
                Section(heading="Overview", body="Sorbet structs give typed value objects."),
                Section(heading="Rails", body="Using structs with rails models."),
            ),
        ),
        Document(
            path="/docs/dark-side-of-dry",
            title="The Dark Side of DRY",
            sections=(
                Section(heading="Overview", body="Duplication is cheaper than the wrong abstraction."),
            ),
        ),
    ]
