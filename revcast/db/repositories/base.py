"""
Generic async document repository.

A row holds a pydantic document in ``document`` plus a few indexed columns.
Writes are compare-and-swap on ``revision``: an update only lands if the
stored revision still equals the one the caller read.
"""

from typing import Any, Generic, Optional, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from revcast.db.engine import Base
from revcast.errors import ConcurrencyConflictError

RecordT = TypeVar("RecordT", bound=Base)
DocT = TypeVar("DocT", bound=BaseModel)


class DocumentRepository(Generic[RecordT, DocT]):
    """
    Load, insert and compare-and-swap pydantic documents.

    Subclasses name the id field of the document and copy whatever
    columns they index in ``columns_for``.
    """

    resource: str = "Document"
    id_field: str = "id"

    def __init__(self, model: Type[RecordT], schema: Type[DocT]):
        self.model = model
        self.schema = schema

    # ── Mapping ──────────────────────────────────────────────────────────

    def columns_for(self, doc: DocT) -> dict[str, Any]:
        """Indexed columns derived from the document."""
        return {}

    def _payload(self, doc: DocT) -> dict[str, Any]:
        return doc.model_dump(mode="json", exclude={"revision"})

    def to_document(self, record: RecordT) -> DocT:
        data = dict(record.document)
        if "revision" in self.schema.model_fields:
            data["revision"] = record.revision
        return self.schema.model_validate(data)

    def _doc_id(self, doc: DocT) -> str:
        return getattr(doc, self.id_field)

    # ── Reads ────────────────────────────────────────────────────────────

    async def get_record(
        self,
        db: AsyncSession,
        id: str,
        include_deleted: bool = False,
    ) -> Optional[RecordT]:
        stmt = select(self.model).where(self.model.id == id)
        if not include_deleted:
            stmt = stmt.where(self.model.is_deleted.is_(False))
        # Rows may have been rewritten by a bulk UPDATE in this session
        stmt = stmt.execution_options(populate_existing=True)
        result = await db.execute(stmt)
        return result.scalar_one_or_none()

    async def get(
        self,
        db: AsyncSession,
        id: str,
        include_deleted: bool = False,
    ) -> Optional[DocT]:
        """Get a document by id. Soft-deleted documents count as absent."""
        record = await self.get_record(db, id, include_deleted=include_deleted)
        return self.to_document(record) if record is not None else None

    # ── Writes ───────────────────────────────────────────────────────────

    async def insert(self, db: AsyncSession, doc: DocT) -> DocT:
        """Insert a new document at revision 1."""
        if "revision" in self.schema.model_fields:
            doc = doc.model_copy(update={"revision": 1})
        record = self.model(
            id=self._doc_id(doc),
            revision=1,
            document=self._payload(doc),
            **self.columns_for(doc),
        )
        db.add(record)
        await db.flush()
        return doc

    async def save(self, db: AsyncSession, doc: DocT, expected_revision: int) -> DocT:
        """
        Write ``doc`` if the stored revision is still ``expected_revision``.

        Returns the document at its new revision; raises
        ConcurrencyConflictError when someone else got there first.
        """
        new_revision = expected_revision + 1
        if "revision" in self.schema.model_fields:
            doc = doc.model_copy(update={"revision": new_revision})

        stmt = (
            update(self.model)
            .where(
                self.model.id == self._doc_id(doc),
                self.model.revision == expected_revision,
            )
            .values(
                revision=new_revision,
                document=self._payload(doc),
                **self.columns_for(doc),
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrencyConflictError(self.resource, self._doc_id(doc), expected_revision)
        return doc
