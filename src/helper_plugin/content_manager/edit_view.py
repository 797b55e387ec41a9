"""
Edit-view data manager.

Holds the form state of a content entry being edited (initial and modified
data, field errors, allowed fields) and builds the sanitized payload that is
submitted to the storage API.
"""

import copy
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from helper_plugin.common.config import get_config
from helper_plugin.common.logger import setup_logger
from helper_plugin.content_manager.redactor import (
    DYNAMIC_ZONE_DISCRIMINATOR,
    ContentRedactor,
    RedactionPolicy,
)
from helper_plugin.content_manager.schema import ComponentSchemaTable, ContentTypeSchema
from helper_plugin.content_manager.client import ContentManagerClient
from helper_plugin.exceptions import ContentApiError, PublishNotAvailable, RedactionError

logger = setup_logger(__name__)

Key = Union[str, int]

# Values of EditViewDataManager.status
STATUS_RESOLVED = "resolved"
STATUS_PUBLISH_PENDING = "publish-pending"
STATUS_UNPUBLISH_PENDING = "unpublish-pending"


class EditViewDataManager:
    """
    Form state for the content manager edit view.

    Paths into the modified data are given as key lists mixing field names
    and list indexes, e.g. ``['sections', 0, 'title']``.
    """

    def __init__(
        self,
        content_type: Any,
        components: Any = None,
        initial_data: Optional[Mapping[str, Any]] = None,
        is_creating_entry: bool = False,
        is_single_type: bool = False,
        has_draft_and_publish: bool = False,
        create_allowed_fields: Iterable[str] = (),
        read_allowed_fields: Iterable[str] = (),
        update_allowed_fields: Iterable[str] = (),
        policy: Optional[RedactionPolicy] = None,
        client: Optional[ContentManagerClient] = None
    ):
        """
        Initialize the data manager.

        Args:
            content_type: ContentTypeSchema or raw schema of the edited entry
            components: Component schemas keyed by identifier
            initial_data: Entry as loaded from the server
            is_creating_entry: True when editing a new, unsaved entry
            is_single_type: True for single types (no collection)
            has_draft_and_publish: Whether the content type supports drafts
            create_allowed_fields: Fields the user may set on creation
            read_allowed_fields: Fields the user may read
            update_allowed_fields: Fields the user may change on update
            policy: Redaction policy for submissions (from global config if None)
            client: Content manager API client for publishing (from global config if None)
        """
        self.content_type = ContentTypeSchema.coerce(content_type)
        self.components = ComponentSchemaTable.coerce(components)
        self.initial_data: Dict[str, Any] = copy.deepcopy(dict(initial_data or {}))
        self.modified_data: Dict[str, Any] = copy.deepcopy(self.initial_data)
        self.is_creating_entry = is_creating_entry
        self.is_single_type = is_single_type
        self.has_draft_and_publish = has_draft_and_publish
        self.create_allowed_fields = list(create_allowed_fields)
        self.read_allowed_fields = list(read_allowed_fields)
        self.update_allowed_fields = list(update_allowed_fields)
        self.form_errors: Dict[str, Any] = {}
        self.status = STATUS_RESOLVED
        self._client = client

        if policy is None:
            policy = RedactionPolicy.from_config(get_config())
        self._redactor = ContentRedactor(self.components, policy)

    # --- Path helpers ---

    def _container(
        self,
        keys: Sequence[Key],
        create: bool = False,
        root: Optional[Dict[str, Any]] = None
    ) -> Any:
        """Walk to the parent of the last key, optionally creating dicts."""
        node: Any = self.modified_data if root is None else root
        for key in keys[:-1]:
            if isinstance(node, list):
                node = node[key]
                continue
            if key not in node or node[key] is None:
                if not create:
                    raise KeyError(key)
                node[key] = {}
            node = node[key]
        return node

    def _get(self, keys: Sequence[Key], root: Optional[Dict[str, Any]] = None) -> Any:
        node: Any = self.modified_data if root is None else root
        for key in keys:
            node = node[key]
        return node

    def _list_at(self, keys: Sequence[Key], root: Optional[Dict[str, Any]] = None) -> List[Any]:
        parent = self._container(keys, create=True, root=root)
        if isinstance(parent, list):
            return parent[keys[-1]]

        current = parent.get(keys[-1])
        if current is None:
            current = []
            parent[keys[-1]] = current
        return current

    # --- Field edits ---

    def on_change(self, keys: Sequence[Key], value: Any) -> None:
        """Set the value at a path, creating missing parent records."""
        parent = self._container(keys, create=True)
        parent[keys[-1]] = value

    def add_non_repeatable_component_to_field(
        self,
        keys: Sequence[Key],
        component_uid: str
    ) -> None:
        """Attach an empty single component at a path."""
        self.components.resolve(component_uid, ".".join(map(str, keys)))
        self.on_change(keys, {})

    def add_repeatable_component_to_field(
        self,
        keys: Sequence[Key],
        component_uid: str,
        position: Optional[int] = None
    ) -> None:
        """Append (or insert at position) an empty entry to a repeatable component."""
        self.components.resolve(component_uid, ".".join(map(str, keys)))
        entries = self._list_at(keys)
        entries.insert(len(entries) if position is None else position, {})

    def add_component_to_dynamic_zone(
        self,
        keys: Sequence[Key],
        component_uid: str,
        position: Optional[int] = None
    ) -> None:
        """Append (or insert at position) a new entry of the given component to a dynamic zone."""
        self.components.resolve(component_uid, ".".join(map(str, keys)))
        entries = self._list_at(keys)
        entry = {DYNAMIC_ZONE_DISCRIMINATOR: component_uid}
        entries.insert(len(entries) if position is None else position, entry)

    def remove_component_from_field(self, keys: Sequence[Key]) -> None:
        """Remove a single component from its parent record."""
        parent = self._container(keys)
        del parent[keys[-1]]

    def remove_repeatable_field(self, keys: Sequence[Key], index: int) -> None:
        """Remove one entry from a repeatable component."""
        del self._get(keys)[index]

    def remove_component_from_dynamic_zone(self, dynamic_zone_name: str, index: int) -> None:
        """Remove one entry from a top-level dynamic zone."""
        del self.modified_data[dynamic_zone_name][index]

    # --- Reordering ---

    def move_component_field(self, name: str, current_index: int, new_index: int) -> None:
        """
        Move an entry of a top-level list field.

        Raises:
            IndexError: If either index is out of range
        """
        entries = self.modified_data[name]
        size = len(entries)
        if not (0 <= current_index < size and 0 <= new_index < size):
            raise IndexError(
                f"Cannot move {name}[{current_index}] to {new_index}: {size} entries"
            )
        entries.insert(new_index, entries.pop(current_index))

    def move_component_up(self, dynamic_zone_name: str, current_index: int) -> None:
        self.move_component_field(dynamic_zone_name, current_index, current_index - 1)

    def move_component_down(self, dynamic_zone_name: str, current_index: int) -> None:
        self.move_component_field(dynamic_zone_name, current_index, current_index + 1)

    # --- Relations ---

    def relation_connect(
        self,
        keys: Sequence[Key],
        value: Mapping[str, Any],
        to_one_relation: bool = False
    ) -> None:
        """Connect a related entry; a to-one relation replaces what was there."""
        if to_one_relation:
            self.on_change(keys, [dict(value)])
            return
        self._list_at(keys).append(dict(value))

    def relation_disconnect(self, keys: Sequence[Key], relation_id: Any) -> None:
        """Drop the related entry with the given id."""
        relations = self._list_at(keys)
        relations[:] = [rel for rel in relations if rel.get('id') != relation_id]

    def relation_load(
        self,
        initial_data_path: Sequence[Key],
        modified_data_path: Sequence[Key],
        value: Iterable[Mapping[str, Any]],
        modified_data_only: bool = False
    ) -> None:
        """
        Prepend a freshly fetched page of relations.

        Relations already in the modified data are skipped. Unless
        modified_data_only is set, the initial data gets the same page so the
        load does not count as an edit.
        """
        modified = self._list_at(modified_data_path)
        known_ids = {rel.get('id') for rel in modified}
        to_load = [dict(rel) for rel in value if rel.get('id') not in known_ids]

        if not modified_data_only:
            initial = self._list_at(initial_data_path, root=self.initial_data)
            initial[:] = _unique_by_id(copy.deepcopy(to_load) + initial)

        modified[:] = _unique_by_id(to_load + modified)

    def relation_reorder(self, keys: Sequence[Key], old_index: int, new_index: int) -> None:
        """
        Move a related entry within its list.

        Raises:
            IndexError: If either index is out of range
        """
        relations = self._get(keys)
        size = len(relations)
        if not (0 <= old_index < size and 0 <= new_index < size):
            raise IndexError(f"Cannot move relation {old_index} to {new_index}: {size} entries")
        relations.insert(new_index, relations.pop(old_index))

    # --- State ---

    @property
    def is_dirty(self) -> bool:
        """True when the modified data differs from the initial data."""
        return self.modified_data != self.initial_data

    @property
    def allowed_fields(self) -> List[str]:
        if self.is_creating_entry:
            return self.create_allowed_fields
        return self.update_allowed_fields

    def can_edit_field(self, name: str) -> bool:
        return name in self.allowed_fields

    def can_read_field(self, name: str) -> bool:
        return name in self.read_allowed_fields

    def set_errors(self, errors: Optional[Mapping[str, Any]]) -> None:
        self.form_errors = dict(errors or {})

    def first_error_field(self) -> Optional[str]:
        """
        Name of the first top-level field with an error.

        Fields are taken in schema attribute order, so the result matches the
        first errored input of the rendered form. Errors on fields the schema
        does not declare follow in the order they were reported.
        """
        if not self.form_errors:
            return None

        errored = {key.split('.')[0] for key in self.form_errors}
        for name in self.content_type.attributes:
            if name in errored:
                return name
        return next(iter(self.form_errors)).split('.')[0]

    def reset(self) -> None:
        """Discard edits and errors."""
        self.modified_data = copy.deepcopy(self.initial_data)
        self.form_errors = {}

    def build_submission(self) -> Dict[str, Any]:
        """
        Sanitize the modified data for submission.

        Returns:
            Payload with server-managed fields removed

        Raises:
            RedactionError: If the modified data cannot be redacted
        """
        try:
            return self._redactor.redact(self.modified_data, self.content_type)
        except RedactionError as e:
            logger.warning(
                "Rejected submission for %s: %s",
                self.content_type.uid or "entry", e
            )
            raise

    # --- Draft and publish ---

    @property
    def is_published(self) -> bool:
        """True when the saved entry has a publication date."""
        return self.has_draft_and_publish and self.initial_data.get('publishedAt') is not None

    def _check_publishable(self, action: str) -> None:
        if not self.has_draft_and_publish:
            raise PublishNotAvailable(f"Cannot {action}: draft and publish is disabled")
        if self.is_creating_entry:
            raise PublishNotAvailable(f"Cannot {action} an entry that has not been saved")
        if not self.content_type.uid:
            raise PublishNotAvailable(f"Cannot {action}: content type has no uid")

    def _run_entry_action(self, action: str, pending_status: str) -> Dict[str, Any]:
        if self._client is None:
            self._client = ContentManagerClient.from_config(get_config())

        request = getattr(self._client, action)
        self.status = pending_status
        try:
            entry = request(
                self.content_type.uid,
                entry_id=self.initial_data.get('id'),
                is_single_type=self.is_single_type
            )
        except ContentApiError as e:
            logger.warning("Could not %s %s: %s", action, self.content_type.uid, e)
            raise
        finally:
            self.status = STATUS_RESOLVED

        self.initial_data = copy.deepcopy(entry)
        self.modified_data = copy.deepcopy(entry)
        return entry

    def on_publish(self) -> Dict[str, Any]:
        """
        Publish the saved entry and adopt the server's copy as form state.

        Raises:
            PublishNotAvailable: Drafts disabled, entry unsaved, or unsaved edits pending
            ContentApiError: If the server rejects the request
        """
        self._check_publishable("publish")
        if self.is_dirty:
            raise PublishNotAvailable("Cannot publish with unsaved changes")
        return self._run_entry_action("publish", STATUS_PUBLISH_PENDING)

    def on_unpublish(self) -> Dict[str, Any]:
        """
        Revert the saved entry to draft and adopt the server's copy as form state.

        Raises:
            PublishNotAvailable: Drafts disabled or entry unsaved
            ContentApiError: If the server rejects the request
        """
        self._check_publishable("unpublish")
        return self._run_entry_action("unpublish", STATUS_UNPUBLISH_PENDING)


def _unique_by_id(relations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first relation per id."""
    seen = set()
    unique = []
    for rel in relations:
        rel_id = rel.get('id')
        if rel_id in seen:
            continue
        seen.add(rel_id)
        unique.append(rel)
    return unique
