"""Unit tests for the edit-view data manager.

Tests form-state edits, component and dynamic zone manipulation, allowed
fields, error focus and building sanitized submissions.
"""

from unittest.mock import MagicMock

import pytest

from helper_plugin.content_manager.client import ContentManagerClient
from helper_plugin.content_manager.edit_view import (
    STATUS_PUBLISH_PENDING,
    STATUS_RESOLVED,
    EditViewDataManager,
)
from helper_plugin.content_manager.redactor import RedactionPolicy
from helper_plugin.exceptions import (
    ContentApiError,
    MalformedDynamicZoneEntry,
    PublishNotAvailable,
    UnresolvedComponentSchema,
)


@pytest.fixture
def manager(article_schema, component_schemas, article_entry, pass_through_policy):
    """Data manager editing an existing article."""
    return EditViewDataManager(
        article_schema,
        component_schemas,
        initial_data=article_entry,
        create_allowed_fields=['title', 'slug', 'cover'],
        read_allowed_fields=['title', 'slug', 'views', 'cover'],
        update_allowed_fields=['title', 'cover'],
        policy=pass_through_policy,
    )


@pytest.fixture
def new_entry_manager(article_schema, component_schemas, pass_through_policy):
    """Data manager creating a new article."""
    return EditViewDataManager(
        article_schema,
        component_schemas,
        is_creating_entry=True,
        create_allowed_fields=['title', 'slug'],
        policy=pass_through_policy,
    )


class TestInitialState:
    """Tests for the state right after construction."""

    def test_modified_is_copy_of_initial(self, manager, article_entry):
        assert manager.modified_data == article_entry
        assert manager.modified_data is not manager.initial_data
        assert not manager.is_dirty

    def test_initial_data_detached_from_caller(self, article_schema, component_schemas,
                                               article_entry, pass_through_policy):
        manager = EditViewDataManager(article_schema, component_schemas,
                                      initial_data=article_entry, policy=pass_through_policy)
        article_entry['title'] = 'changed by caller'
        assert manager.initial_data['title'] == 'Hello world'

    def test_defaults(self, new_entry_manager):
        assert new_entry_manager.modified_data == {}
        assert new_entry_manager.is_creating_entry is True
        assert new_entry_manager.is_single_type is False
        assert new_entry_manager.has_draft_and_publish is False


class TestOnChange:
    """Tests for setting values by path."""

    def test_top_level_change(self, manager):
        manager.on_change(['title'], 'New title')

        assert manager.modified_data['title'] == 'New title'
        assert manager.initial_data['title'] == 'Hello world'
        assert manager.is_dirty

    def test_nested_change_in_list(self, manager):
        manager.on_change(['sections', 0, 'heading'], 'Hi')
        assert manager.modified_data['sections'][0]['heading'] == 'Hi'

    def test_creates_missing_parents(self, new_entry_manager):
        new_entry_manager.on_change(['seo', 'meta', 'title'], 'Meta')
        assert new_entry_manager.modified_data == {'seo': {'meta': {'title': 'Meta'}}}

    def test_reset(self, manager):
        manager.on_change(['title'], 'New title')
        manager.set_errors({'title': 'Too short'})

        manager.reset()

        assert not manager.is_dirty
        assert manager.form_errors == {}


class TestComponents:
    """Tests for adding and removing components."""

    def test_add_non_repeatable_component(self, new_entry_manager):
        new_entry_manager.add_non_repeatable_component_to_field(['cover'], 'media.image')
        assert new_entry_manager.modified_data['cover'] == {}

    def test_add_unknown_component(self, new_entry_manager):
        with pytest.raises(UnresolvedComponentSchema):
            new_entry_manager.add_non_repeatable_component_to_field(['cover'], 'media.video')
        assert 'cover' not in new_entry_manager.modified_data

    def test_add_repeatable_component(self, manager):
        manager.add_repeatable_component_to_field(['images'], 'media.image')
        manager.add_repeatable_component_to_field(['images'], 'media.image', position=0)

        images = manager.modified_data['images']
        assert len(images) == 4
        assert images[0] == {}
        assert images[-1] == {}

    def test_add_repeatable_creates_list(self, new_entry_manager):
        new_entry_manager.add_repeatable_component_to_field(['images'], 'media.image')
        assert new_entry_manager.modified_data['images'] == [{}]

    def test_add_repeatable_inside_dynamic_zone_entry(self, manager):
        manager.add_repeatable_component_to_field(['sections', 0, 'media'], 'media.image')
        assert manager.modified_data['sections'][0]['media'] == [{'id': 21, 'url': 'hero.png'}, {}]

    def test_remove_component_from_field(self, manager):
        manager.remove_component_from_field(['cover'])
        assert 'cover' not in manager.modified_data

    def test_remove_repeatable_field(self, manager):
        manager.remove_repeatable_field(['images'], 0)
        assert manager.modified_data['images'] == [{'id': 12, 'url': 'b.png'}]


class TestDynamicZone:
    """Tests for dynamic zone manipulation."""

    def test_add_component(self, manager):
        manager.add_component_to_dynamic_zone(['sections'], 'blocks.quote')
        assert manager.modified_data['sections'][-1] == {'__component': 'blocks.quote'}

    def test_add_component_at_position(self, manager):
        manager.add_component_to_dynamic_zone(['sections'], 'blocks.hero', position=1)

        uids = [entry['__component'] for entry in manager.modified_data['sections']]
        assert uids == ['blocks.hero', 'blocks.hero', 'blocks.quote']

    def test_add_unknown_component(self, manager):
        with pytest.raises(UnresolvedComponentSchema):
            manager.add_component_to_dynamic_zone(['sections'], 'blocks.video')

    def test_remove_component(self, manager):
        manager.remove_component_from_dynamic_zone('sections', 0)

        assert len(manager.modified_data['sections']) == 1
        assert manager.modified_data['sections'][0]['__component'] == 'blocks.quote'

    def test_move_down_and_up(self, manager):
        manager.move_component_down('sections', 0)
        assert manager.modified_data['sections'][0]['__component'] == 'blocks.quote'

        manager.move_component_up('sections', 1)
        assert manager.modified_data['sections'][0]['__component'] == 'blocks.hero'

    def test_move_component_field(self, manager):
        manager.add_component_to_dynamic_zone(['sections'], 'blocks.quote')
        manager.on_change(['sections', 2, 'body'], 'third')

        manager.move_component_field('sections', current_index=2, new_index=0)

        assert manager.modified_data['sections'][0]['body'] == 'third'

    @pytest.mark.parametrize('current_index,new_index', [(0, -1), (1, 2), (5, 0)])
    def test_move_out_of_range(self, manager, current_index, new_index):
        with pytest.raises(IndexError):
            manager.move_component_field('sections', current_index, new_index)


class TestAllowedFields:
    """Tests for permission-driven field access."""

    def test_update_fields_when_editing(self, manager):
        assert manager.allowed_fields == ['title', 'cover']
        assert manager.can_edit_field('title')
        assert not manager.can_edit_field('slug')

    def test_create_fields_when_creating(self, new_entry_manager):
        assert new_entry_manager.can_edit_field('slug')

    def test_read_fields(self, manager):
        assert manager.can_read_field('views')
        assert not manager.can_read_field('sections')


class TestFormErrors:
    """Tests for locating the first field in error."""

    def test_no_errors(self, manager):
        assert manager.first_error_field() is None

    def test_schema_order_wins(self, manager):
        manager.set_errors({'sections.0.heading': 'Required', 'slug': 'Taken'})
        assert manager.first_error_field() == 'slug'

    def test_undeclared_field_falls_back_to_reported_order(self, manager):
        manager.set_errors({'seo.title': 'Required', 'other': 'Bad'})
        assert manager.first_error_field() == 'seo'


class TestBuildSubmission:
    """Tests for sanitized submission payloads."""

    def test_strips_server_fields(self, manager):
        manager.on_change(['title'], 'Edited')

        payload = manager.build_submission()

        assert payload['title'] == 'Edited'
        assert 'id' not in payload
        assert 'createdBy' not in payload
        assert 'updatedAt' not in payload
        assert all('id' not in image for image in payload['images'])

    def test_submission_does_not_touch_form_state(self, manager, article_entry):
        manager.build_submission()
        assert manager.modified_data == article_entry

    def test_new_dynamic_zone_entry_submitted(self, manager):
        manager.add_component_to_dynamic_zone(['sections'], 'blocks.quote')
        manager.on_change(['sections', 2, 'body'], 'New quote')

        payload = manager.build_submission()

        assert payload['sections'][2] == {'__component': 'blocks.quote', 'body': 'New quote'}

    def test_malformed_entry_rejected(self, manager):
        manager.modified_data['sections'].append({'body': 'lost discriminator'})

        with pytest.raises(MalformedDynamicZoneEntry):
            manager.build_submission()

    def test_base_policy(self, article_schema, component_schemas, article_entry):
        manager = EditViewDataManager(article_schema, component_schemas,
                                      initial_data=article_entry, policy=RedactionPolicy())

        payload = manager.build_submission()

        assert 'title' not in payload
        assert payload['images'] == [{}, {}]

    def test_policy_from_global_config(self, article_schema, component_schemas, article_entry,
                                       tmp_path, monkeypatch):
        import helper_plugin.common.config as config_module
        from helper_plugin.common.config import Config

        path = tmp_path / 'config.yaml'
        path.write_text('redaction:\n  retain_unstructured: true\n  excluded_fields: [id, slug]\n')
        monkeypatch.setattr(config_module, '_global_config', Config(str(path)))

        manager = EditViewDataManager(article_schema, component_schemas, initial_data=article_entry)
        payload = manager.build_submission()

        assert 'slug' not in payload
        assert payload['createdBy'] == {'id': 9, 'firstname': 'Ada'}

    def test_default_policy_from_packaged_config(self, article_schema, component_schemas,
                                                 article_entry, monkeypatch):
        """With no config loaded yet, the packaged default config applies."""
        import helper_plugin.common.config as config_module

        monkeypatch.setattr(config_module, '_global_config', None)

        manager = EditViewDataManager(article_schema, component_schemas, initial_data=article_entry)
        payload = manager.build_submission()

        assert config_module._global_config.config_path == config_module.DEFAULT_CONFIG_PATH
        assert payload['title'] == 'Hello world'
        assert 'id' not in payload


class TestRelations:
    """Tests for relation editing."""

    @pytest.fixture
    def relation_manager(self, pass_through_policy):
        schema = {
            'uid': 'api::article.article',
            'attributes': {
                'author': {'type': 'relation', 'relation': 'manyToOne'},
                'tags': {'type': 'relation', 'relation': 'manyToMany'},
            },
        }
        initial = {
            'id': 1,
            'author': [{'id': 7, 'name': 'Ada'}],
            'tags': [{'id': 1, 'name': 'news'}, {'id': 2, 'name': 'tech'}],
        }
        return EditViewDataManager(schema, initial_data=initial, policy=pass_through_policy)

    def test_connect_appends(self, relation_manager):
        relation_manager.relation_connect(['tags'], {'id': 3, 'name': 'ai'})

        assert [tag['id'] for tag in relation_manager.modified_data['tags']] == [1, 2, 3]
        assert relation_manager.is_dirty

    def test_connect_to_one_replaces(self, relation_manager):
        relation_manager.relation_connect(['author'], {'id': 8, 'name': 'Grace'}, to_one_relation=True)
        assert relation_manager.modified_data['author'] == [{'id': 8, 'name': 'Grace'}]

    def test_connect_creates_list(self, relation_manager):
        relation_manager.relation_connect(['related'], {'id': 4})
        assert relation_manager.modified_data['related'] == [{'id': 4}]

    def test_disconnect(self, relation_manager):
        relation_manager.relation_disconnect(['tags'], 1)
        assert relation_manager.modified_data['tags'] == [{'id': 2, 'name': 'tech'}]

    def test_disconnect_unknown_id_is_noop(self, relation_manager):
        relation_manager.relation_disconnect(['tags'], 99)
        assert not relation_manager.is_dirty

    def test_load_updates_both_copies(self, relation_manager):
        page = [{'id': 2, 'name': 'tech'}, {'id': 5, 'name': 'old'}]

        relation_manager.relation_load(['tags'], ['tags'], page)

        assert [tag['id'] for tag in relation_manager.modified_data['tags']] == [5, 1, 2]
        assert [tag['id'] for tag in relation_manager.initial_data['tags']] == [5, 1, 2]
        assert not relation_manager.is_dirty

    def test_load_modified_only(self, relation_manager):
        relation_manager.relation_load(['tags'], ['tags'], [{'id': 5}], modified_data_only=True)

        assert [tag['id'] for tag in relation_manager.modified_data['tags']] == [5, 1, 2]
        assert [tag['id'] for tag in relation_manager.initial_data['tags']] == [1, 2]

    def test_reorder(self, relation_manager):
        relation_manager.relation_reorder(['tags'], 0, 1)
        assert [tag['id'] for tag in relation_manager.modified_data['tags']] == [2, 1]

    def test_reorder_out_of_range(self, relation_manager):
        with pytest.raises(IndexError):
            relation_manager.relation_reorder(['tags'], 0, 2)


class TestDraftAndPublish:
    """Tests for publishing through the content manager client."""

    PUBLISHED = {'id': 1, 'title': 'Hello world', 'publishedAt': '2024-02-01T00:00:00Z'}

    @pytest.fixture
    def client(self):
        return MagicMock(spec=ContentManagerClient)

    @pytest.fixture
    def draft_manager(self, article_schema, component_schemas, pass_through_policy, client):
        initial = {'id': 1, 'title': 'Hello world', 'publishedAt': None}
        return EditViewDataManager(
            article_schema, component_schemas, initial_data=initial,
            has_draft_and_publish=True, policy=pass_through_policy, client=client,
        )

    def test_publish(self, draft_manager, client):
        client.publish.return_value = dict(self.PUBLISHED)

        entry = draft_manager.on_publish()

        client.publish.assert_called_once_with(
            'api::article.article', entry_id=1, is_single_type=False
        )
        assert entry == self.PUBLISHED
        assert draft_manager.is_published
        assert draft_manager.modified_data == self.PUBLISHED
        assert draft_manager.status == STATUS_RESOLVED

    def test_status_pending_during_request(self, draft_manager, client):
        seen = []
        client.publish.side_effect = lambda *args, **kwargs: seen.append(draft_manager.status) or dict(self.PUBLISHED)

        draft_manager.on_publish()

        assert seen == [STATUS_PUBLISH_PENDING]

    def test_unpublish(self, draft_manager, client):
        client.unpublish.return_value = {'id': 1, 'title': 'Hello world', 'publishedAt': None}

        draft_manager.on_unpublish()

        client.unpublish.assert_called_once()
        assert not draft_manager.is_published

    def test_single_type(self, article_schema, pass_through_policy, client):
        client.publish.return_value = {'title': 'Home', 'publishedAt': '2024-02-01T00:00:00Z'}
        manager = EditViewDataManager(
            article_schema, initial_data={'title': 'Home'}, is_single_type=True,
            has_draft_and_publish=True, policy=pass_through_policy, client=client,
        )

        manager.on_publish()

        client.publish.assert_called_once_with(
            'api::article.article', entry_id=None, is_single_type=True
        )

    def test_requires_draft_and_publish(self, manager, client):
        manager._client = client
        with pytest.raises(PublishNotAvailable):
            manager.on_publish()
        client.publish.assert_not_called()

    def test_requires_saved_entry(self, article_schema, pass_through_policy, client):
        manager = EditViewDataManager(
            article_schema, is_creating_entry=True, has_draft_and_publish=True,
            policy=pass_through_policy, client=client,
        )
        with pytest.raises(PublishNotAvailable):
            manager.on_unpublish()

    def test_refuses_unsaved_changes(self, draft_manager, client):
        draft_manager.on_change(['title'], 'Edited')
        with pytest.raises(PublishNotAvailable):
            draft_manager.on_publish()
        client.publish.assert_not_called()

    def test_api_error_keeps_form_state(self, draft_manager, client):
        client.publish.side_effect = ContentApiError('boom', status_code=500)

        with pytest.raises(ContentApiError):
            draft_manager.on_publish()

        assert draft_manager.status == STATUS_RESOLVED
        assert draft_manager.initial_data['publishedAt'] is None
