from __future__ import annotations

from typing import Any, Generic, TypeVar

from esmapper.core import Component, MapperConfig, Response, operation
from esmapper.document import IndexParam, IndexResult, IndexSettings
from esmapper.query import ConditionList

from ._models import SearchResult, WriteResult

T = TypeVar("T")


class DocumentMapper(Component, Generic[T]):
    """CRUD surface for one document type."""

    document_type: type[T]
    config: MapperConfig

    def __init__(
        self,
        document_type: type[T],
        config: MapperConfig | dict | None = None,
        **kwargs,
    ):
        """Initialize.

        Args:
            document_type:
                Document type, a data model decorated with @document.
            config:
                Mapper config.
        """
        self.document_type = document_type
        if isinstance(config, dict):
            config = MapperConfig.from_dict(config)
        self.config = config or MapperConfig()
        super().__init__(**kwargs)

    @operation()
    def insert(self, entity: T, **kwargs: Any) -> Response[WriteResult]:
        """Insert document.

        Args:
            entity:
                Document to insert.

        Returns:
            Write result with the assigned identifier.
        """
        raise NotImplementedError

    @operation()
    def insert_batch(
        self, entities: list[T], **kwargs: Any
    ) -> Response[WriteResult]:
        """Insert documents in one bulk request.

        Args:
            entities:
                Documents to insert.

        Returns:
            Write result with the assigned identifiers by position.

        Raises:
            BatchFailureError:
                Any document failed. Assume none was written.
        """
        raise NotImplementedError

    @operation()
    def update(
        self,
        entity: T | None = None,
        conditions: ConditionList | None = None,
        **kwargs: Any,
    ) -> Response[WriteResult]:
        """Update documents matching conditions.

        Args:
            entity:
                Document whose written fields are set on every
                matching document. When None, the fields set on an
                UpdateConditionList are used.
            conditions:
                Conditions selecting the documents.

        Returns:
            Write result with the number of updated documents.
        """
        raise NotImplementedError

    @operation()
    def update_by_id(self, entity: T, **kwargs: Any) -> Response[WriteResult]:
        """Update document by its identifier.

        Args:
            entity:
                Document with its key field set.

        Returns:
            Write result.
        """
        raise NotImplementedError

    @operation()
    def update_batch_by_id(
        self, entities: list[T], **kwargs: Any
    ) -> Response[WriteResult]:
        """Update documents by identifier in one bulk request.

        Args:
            entities:
                Documents with their key field set.

        Returns:
            Write result with the number of updated documents.
            Failed items are logged and not counted.
        """
        raise NotImplementedError

    @operation()
    def delete(
        self, conditions: ConditionList, **kwargs: Any
    ) -> Response[WriteResult]:
        """Delete documents matching conditions.

        Args:
            conditions:
                Conditions selecting the documents.

        Returns:
            Write result with the number of deleted documents.
        """
        raise NotImplementedError

    @operation()
    def delete_by_id(self, id: str, **kwargs: Any) -> Response[WriteResult]:
        """Delete document by identifier.

        Args:
            id:
                Document identifier.

        Returns:
            Write result, count 0 when the document does not exist.
        """
        raise NotImplementedError

    @operation()
    def delete_batch_by_ids(
        self, ids: list[str], **kwargs: Any
    ) -> Response[WriteResult]:
        """Delete documents by identifier in one bulk request.

        Args:
            ids:
                Document identifiers, not empty.

        Returns:
            Write result with the number of deleted documents.
        """
        raise NotImplementedError

    @operation()
    def search(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[SearchResult]:
        """Search documents.

        Args:
            conditions:
                Conditions and request directives.

        Returns:
            Raw hits, total and aggregations.
        """
        raise NotImplementedError

    @operation()
    def select_list(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[list[T]]:
        """Search and decode documents.

        Args:
            conditions:
                Conditions and request directives.

        Returns:
            Documents.
        """
        raise NotImplementedError

    @operation()
    def select_one(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[T | None]:
        """Search and decode the first document.

        Args:
            conditions:
                Conditions and request directives.

        Returns:
            First document or None.
        """
        raise NotImplementedError

    @operation()
    def select_by_id(self, id: str, **kwargs: Any) -> Response[T]:
        """Get document by identifier.

        Args:
            id:
                Document identifier.

        Returns:
            Document.

        Raises:
            NotFoundError:
                Document does not exist.
        """
        raise NotImplementedError

    @operation()
    def select_batch_by_ids(
        self, ids: list[str], **kwargs: Any
    ) -> Response[list[T]]:
        """Get documents by identifier.

        Args:
            ids:
                Document identifiers.

        Returns:
            Documents found.
        """
        raise NotImplementedError

    @operation()
    def select_count(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[int]:
        """Count documents.

        Args:
            conditions:
                Conditions selecting the documents.

        Returns:
            Number of matching documents.
        """
        raise NotImplementedError

    @operation()
    def get_source(
        self, conditions: ConditionList | None = None, **kwargs: Any
    ) -> Response[str]:
        """Get the search request that conditions compile to.

        Args:
            conditions:
                Conditions and request directives.

        Returns:
            Search request body as JSON text.
        """
        raise NotImplementedError

    @operation()
    def exists_index(
        self, index: str | None = None, **kwargs: Any
    ) -> Response[bool]:
        """Check if index exists.

        Args:
            index:
                Index name. Defaults to the document index.

        Returns:
            A value indicating whether the index exists.
        """
        raise NotImplementedError

    @operation()
    def create_index(
        self,
        index: str | None = None,
        params: list[IndexParam] | None = None,
        mapping: dict | None = None,
        settings: IndexSettings | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        """Create index.

        Args:
            index:
                Index name. Defaults to the document index.
            params:
                Field mappings.
            mapping:
                Raw mapping, takes precedence over params.
            settings:
                Index settings.

        Returns:
            Index result.
        """
        raise NotImplementedError

    @operation()
    def update_index(
        self,
        index: str | None = None,
        params: list[IndexParam] | None = None,
        mapping: dict | None = None,
        **kwargs: Any,
    ) -> Response[IndexResult]:
        """Update index mapping.

        Args:
            index:
                Index name. Defaults to the document index.
            params:
                Field mappings.
            mapping:
                Raw mapping, takes precedence over params.

        Returns:
            Index result, not acknowledged when nothing to update.

        Raises:
            NotFoundError:
                Index does not exist.
        """
        raise NotImplementedError

    @operation()
    def delete_index(
        self, index: str | None = None, **kwargs: Any
    ) -> Response[IndexResult]:
        """Delete index.

        Args:
            index:
                Index name. Defaults to the document index.

        Returns:
            Index result.

        Raises:
            NotFoundError:
                Index does not exist.
        """
        raise NotImplementedError

    @operation()
    def close(self, **kwargs: Any) -> Response[None]:
        """Close the client."""
        raise NotImplementedError
