"""
Pytest Fixtures for Content Manager Helper Tests

Provides sample content-type schemas, component schemas and content entries
shared across the test files.
"""

import copy

import pytest

from helper_plugin.content_manager.redactor import RedactionPolicy


ARTICLE_SCHEMA = {
    'uid': 'api::article.article',
    'attributes': {
        'title': {'type': 'string'},
        'slug': {'type': 'uid'},
        'views': {'type': 'integer'},
        'cover': {'type': 'component', 'component': 'media.image', 'repeatable': False},
        'images': {'type': 'component', 'component': 'media.image', 'repeatable': True},
        'sections': {'type': 'dynamiczone', 'components': ['blocks.hero', 'blocks.quote']},
    },
    'options': {'timestamps': ['createdAt', 'updatedAt']},
}

COMPONENT_SCHEMAS = {
    'media.image': {
        'attributes': {
            'url': {'type': 'string'},
            'alt': {'type': 'string'},
        },
    },
    'blocks.hero': {
        'attributes': {
            'heading': {'type': 'string'},
            'media': {'type': 'component', 'component': 'media.image', 'repeatable': True},
        },
    },
    'blocks.quote': {
        'attributes': {
            'body': {'type': 'text'},
            # Same field name as in blocks.hero, but a plain string here
            'media': {'type': 'string'},
        },
    },
}

ARTICLE_ENTRY = {
    'id': 1,
    'title': 'Hello world',
    'slug': 'hello-world',
    'views': 42,
    'createdAt': '2024-01-15T12:00:00Z',
    'updatedAt': '2024-01-16T12:00:00Z',
    'publishedAt': '2024-01-16T12:00:00Z',
    'createdBy': {'id': 9, 'firstname': 'Ada'},
    'updatedBy': {'id': 9, 'firstname': 'Ada'},
    'cover': {'id': 10, 'url': 'cover.png', 'alt': 'Cover'},
    'images': [
        {'id': 11, 'url': 'a.png', 'alt': 'A'},
        {'id': 12, 'url': 'b.png'},
    ],
    'sections': [
        {
            '__component': 'blocks.hero',
            'id': 20,
            'heading': 'Welcome',
            'media': [{'id': 21, 'url': 'hero.png'}],
        },
        {
            '__component': 'blocks.quote',
            'id': 22,
            'body': 'Simplicity is prerequisite for reliability.',
            'media': 'quote.png',
        },
    ],
}


@pytest.fixture
def article_schema():
    """Raw schema of the article content type."""
    return copy.deepcopy(ARTICLE_SCHEMA)


@pytest.fixture
def component_schemas():
    """Raw component schemas keyed by identifier."""
    return copy.deepcopy(COMPONENT_SCHEMAS)


@pytest.fixture
def article_entry():
    """A fully populated article entry as returned by the server."""
    return copy.deepcopy(ARTICLE_ENTRY)


@pytest.fixture
def pass_through_policy():
    """Redaction policy that keeps scalars and undeclared fields."""
    return RedactionPolicy(retain_unstructured=True)
