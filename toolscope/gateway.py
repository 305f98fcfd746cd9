"""Access to the remote tool collection.

The collection is a single JSON document of the form
``{"tools": [...], "last_updated": "..."}`` kept either in a local file or in a
MinIO bucket. Records keep the shape of the upstream record service: tags as a
comma-joined string and features as a newline-joined string.
"""

import asyncio
import json
import logging
from datetime import datetime
from datetime import timezone
from io import BytesIO
from pathlib import Path
from typing import Any
from typing import Dict
from typing import List
from typing import Optional

from minio import Minio
from minio.error import S3Error
from pydantic import ValidationError

from toolscope import config
from toolscope.errors import GatewayError
from toolscope.errors import ToolNotFoundError
from toolscope.filtering import all_tags
from toolscope.models import Tool
from toolscope.models import ToolDraft
from toolscope.models import tool_from_record

logger = logging.getLogger(__name__)

TOOLS_OBJECT = "tools.json"


def _empty_document() -> Dict:
    return {"tools": [], "last_updated": ""}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _record_id(record: Dict) -> Any:
    return record.get("Id", record.get("id"))


def _next_id(records: List[Dict]) -> int:
    numeric = []
    for record in records:
        try:
            numeric.append(int(_record_id(record)))
        except (TypeError, ValueError):
            continue
    return max(numeric, default=0) + 1


def draft_to_record(draft: ToolDraft, tool_id: Any) -> Dict:
    """Convert a draft into the stored record shape."""
    return {
        "Id": tool_id,
        "Name": draft.name,
        "Tags": ",".join(draft.tags),
        "description": draft.description,
        "category": draft.category.value,
        "pricing": draft.pricing.value,
        "features": "\n".join(draft.features),
        "website": draft.website,
        "logo": draft.logo,
    }


class ToolGateway:
    """Async CRUD over the tool collection document.

    Subclasses provide blocking `_read_document` and `_write_document`; they are
    run in a worker thread so callers can await them from an event loop.
    """

    def _read_document(self) -> Dict:
        raise NotImplementedError

    def _write_document(self, document: Dict) -> None:
        raise NotImplementedError

    async def _load(self) -> Dict:
        try:
            document = await asyncio.to_thread(self._read_document)
        except GatewayError:
            raise
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read tool collection: {e}")
            raise GatewayError(f"Failed to read tool collection: {e}") from e
        if not isinstance(document, dict) or not isinstance(document.get("tools"), list):
            raise GatewayError("Tool collection document has no 'tools' list")
        return document

    async def _save(self, document: Dict) -> None:
        document["last_updated"] = _now_iso()
        try:
            await asyncio.to_thread(self._write_document, document)
        except GatewayError:
            raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(f"Failed to write tool collection: {e}")
            raise GatewayError(f"Failed to write tool collection: {e}") from e

    @staticmethod
    def _find(records: List[Dict], tool_id: Any) -> Optional[int]:
        for index, record in enumerate(records):
            if str(_record_id(record)) == str(tool_id):
                return index
        return None

    async def get_all(self) -> List[Tool]:
        """All well-formed tools ordered by name; malformed records are skipped."""
        document = await self._load()
        tools = []
        for record in document["tools"]:
            try:
                tools.append(tool_from_record(record))
            except ValidationError as e:
                logger.error(f"Skipping malformed tool record {_record_id(record)!r}: {e}")
                continue
        tools.sort(key=lambda tool: tool.name.lower())
        logger.info(f"Loaded {len(tools):,} tools")
        return tools

    async def get_by_id(self, tool_id) -> Tool:
        document = await self._load()
        index = self._find(document["tools"], tool_id)
        if index is None:
            raise ToolNotFoundError(tool_id)
        try:
            return tool_from_record(document["tools"][index])
        except ValidationError as e:
            raise GatewayError(f"Tool record {tool_id} is malformed: {e}") from e

    async def get_by_category(self, category: str) -> List[Tool]:
        return [tool for tool in await self.get_all() if tool.category == category]

    async def get_by_pricing(self, pricing: str) -> List[Tool]:
        return [tool for tool in await self.get_all() if tool.pricing == pricing]

    async def get_all_tags(self) -> List[str]:
        return all_tags(await self.get_all())

    async def create(self, draft: ToolDraft) -> Tool:
        """Append a new tool record and return it with its assigned id."""
        document = await self._load()
        record = draft_to_record(draft, _next_id(document["tools"]))
        document["tools"].append(record)
        await self._save(document)
        logger.info(f"Created tool {record['Id']}: {draft.name}")
        return tool_from_record(record)

    async def update(self, tool_id, draft: ToolDraft) -> Tool:
        document = await self._load()
        index = self._find(document["tools"], tool_id)
        if index is None:
            raise ToolNotFoundError(tool_id)
        record = draft_to_record(draft, _record_id(document["tools"][index]))
        document["tools"][index] = record
        await self._save(document)
        logger.info(f"Updated tool {tool_id}")
        return tool_from_record(record)

    async def delete(self, tool_id) -> None:
        document = await self._load()
        index = self._find(document["tools"], tool_id)
        if index is None:
            raise ToolNotFoundError(tool_id)
        del document["tools"][index]
        await self._save(document)
        logger.info(f"Deleted tool {tool_id}")


class LocalToolGateway(ToolGateway):
    """Tool collection kept in a local JSON file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_document(self) -> Dict:
        if not self.path.exists():
            logger.info(f"No tools file at {self.path}, starting with an empty collection")
            return _empty_document()
        return json.loads(self.path.read_text())

    def _write_document(self, document: Dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(document, indent=2))
        logger.info(f"Saved {len(document['tools'])} tools to {self.path}")


class MinioToolGateway(ToolGateway):
    """Tool collection kept as a JSON object in a MinIO bucket."""

    def __init__(self, client: Minio, bucket_name: str, object_name: str = TOOLS_OBJECT) -> None:
        self.client = client
        self.bucket_name = bucket_name
        self.object_name = object_name
        self._ensure_bucket()

    @classmethod
    def from_settings(cls, settings: Dict) -> "MinioToolGateway":
        client = Minio(
            settings["endpoint"],
            access_key=settings["access_key"],
            secret_key=settings["secret_key"],
            secure=settings["secure"],
        )
        return cls(client, settings["bucket_name"])

    def _ensure_bucket(self) -> None:
        """Ensure the bucket exists, create if it doesn't."""
        try:
            if not self.client.bucket_exists(self.bucket_name):
                self.client.make_bucket(self.bucket_name)
                logger.info(f"Created bucket: {self.bucket_name}")
        except S3Error as e:
            logger.error(f"Failed to ensure bucket exists: {e}")
            raise GatewayError(f"Failed to ensure bucket {self.bucket_name} exists: {e}") from e

    def _read_document(self) -> Dict:
        try:
            response = self.client.get_object(self.bucket_name, self.object_name)
        except S3Error as e:
            if "NoSuchKey" in str(e):
                logger.info(f"No {self.object_name} found, starting with an empty collection")
                return _empty_document()
            logger.error(f"Failed to get {self.object_name}: {e}")
            raise GatewayError(f"Failed to get {self.object_name}: {e}") from e
        try:
            return json.loads(response.read())
        finally:
            response.close()
            response.release_conn()

    def _write_document(self, document: Dict) -> None:
        payload = json.dumps(document, indent=2).encode("utf-8")
        try:
            self.client.put_object(
                self.bucket_name,
                self.object_name,
                BytesIO(payload),
                length=len(payload),
                content_type="application/json",
            )
        except S3Error as e:
            logger.error(f"Failed to update {self.object_name}: {e}")
            raise GatewayError(f"Failed to update {self.object_name}: {e}") from e
        logger.info(f"Saved {len(document['tools'])} tools to MinIO")


def build_gateway() -> ToolGateway:
    """Gateway for the configured storage backend."""
    if config.use_local_storage():
        return LocalToolGateway(config.local_tools_path())
    return MinioToolGateway.from_settings(config.minio_settings())
