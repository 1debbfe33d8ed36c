# downloadsubmissions/services/content_store.py
from typing import NamedTuple, Optional
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from downloadsubmissions.models.lms import StoredFile
from downloadsubmissions.utils.logger import logger

COMPONENT = "quiz_downloadsubmissions"
FILEAREA = "content"


class FileKey(NamedTuple):
    context_id: int
    component: str
    filearea: str
    itemid: int
    filepath: str
    filename: str


def artifact_key(context_id: int, filename: str) -> FileKey:
    """Location of a text artifact written by the exporter."""
    return FileKey(context_id, COMPONENT, FILEAREA, 0, "/", filename)


class ContentStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self, key: FileKey):
        return select(StoredFile).where(
            StoredFile.context_id == key.context_id,
            StoredFile.component == key.component,
            StoredFile.filearea == key.filearea,
            StoredFile.itemid == key.itemid,
            StoredFile.filepath == key.filepath,
            StoredFile.filename == key.filename,
        )

    async def get_file(self, key: FileKey) -> Optional[StoredFile]:
        result = await self.session.execute(self._select(key))
        return result.scalars().first()

    async def file_exists(self, key: FileKey) -> bool:
        return await self.get_file(key) is not None

    async def create_file_from_string(self, key: FileKey, content: str) -> StoredFile:
        stored = StoredFile(
            **key._asdict(),
            content=content.encode("utf-8"),
            mimetype="text/plain",
        )
        try:
            async with self.session.begin_nested():
                self.session.add(stored)
        except IntegrityError:
            # Another request stored the same location first.
            logger.info(f"File {key.filepath}{key.filename} was created concurrently, reusing it.")
            return await self.get_file(key)
        logger.debug(f"Stored {key.component}/{key.filearea}{key.filepath}{key.filename} in context {key.context_id}")
        return stored

    async def ensure_text_file(self, key: FileKey, text: str) -> Optional[StoredFile]:
        """
        Returns the stored text file at `key`, writing `text` there first if
        nothing is stored yet. Existing files are never rewritten. Returns
        None when `text` is empty.
        """
        if not text:
            return None
        if not await self.file_exists(key):
            await self.create_file_from_string(key, text)
        return await self.get_file(key)
