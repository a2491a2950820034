"""
Storage adapters for registration documents

Two interchangeable stores behind the RegistrationStore interface:
- MongoRegistrationStore: durable, backed by MongoDB through motor
- InMemoryRegistrationStore: ephemeral, lost on restart

Which one runs is decided by configuration (see open_store), never by a
silent runtime branch.
"""
import copy
import logging
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument
from pymongo import errors as pymongo_errors

from app.core.exceptions import DuplicateRegistrationError, StorageError
from app.models import StorageSettings


logger = logging.getLogger(__name__)


class RegistrationStore:
    """Document store capability consumed by the registration manager"""

    backend = "abstract"
    durable = False

    async def connect(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def insert(self, document: Dict[str, Any]) -> None:
        raise NotImplementedError

    async def find_all(self) -> List[Dict[str, Any]]:
        raise NotImplementedError

    async def find_one(self, registration_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def update_fields(self, registration_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Atomically set fields on the matching record; None if nothing matched"""
        raise NotImplementedError

    async def next_sequence(self, name: str) -> int:
        """Increment and return a persisted counter (first value is 1)"""
        raise NotImplementedError


class InMemoryRegistrationStore(RegistrationStore):
    """Process-local store. Data does not survive a restart."""

    backend = "memory"
    durable = False

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}
        self._counters: Dict[str, int] = {}

    async def insert(self, document: Dict[str, Any]) -> None:
        registration_id = document["id"]
        if registration_id in self._documents:
            raise DuplicateRegistrationError(error=f"Duplicate id {registration_id}")
        self._documents[registration_id] = copy.deepcopy(document)
        logger.debug(f"📝 Stored {registration_id} in memory")

    async def find_all(self) -> List[Dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._documents.values()]

    async def find_one(self, registration_id: str) -> Optional[Dict[str, Any]]:
        doc = self._documents.get(registration_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def update_fields(self, registration_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = self._documents.get(registration_id)
        if doc is None:
            return None
        doc.update(copy.deepcopy(fields))
        return copy.deepcopy(doc)

    async def next_sequence(self, name: str) -> int:
        self._counters[name] = self._counters.get(name, 0) + 1
        return self._counters[name]


class MongoRegistrationStore(RegistrationStore):
    """MongoDB-backed store (one collection of registrations + a counters collection)"""

    backend = "mongodb"
    durable = True

    def __init__(
        self,
        mongo_uri: str,
        database: Optional[str] = None,
        collection: str = "event",
        server_selection_timeout_ms: int = 10000,
        client: Optional[Any] = None,
    ):
        self._client = client or AsyncIOMotorClient(
            mongo_uri,
            serverSelectionTimeoutMS=server_selection_timeout_ms,
        )
        # An explicit database name wins over the one in the URI
        if database:
            self._db = self._client[database]
        else:
            self._db = self._client.get_default_database("frontend-arena")
        self._collection = self._db[collection]
        self._counters = self._db["counters"]

    async def connect(self) -> None:
        try:
            await self._client.admin.command("ping")
            await self._collection.create_index("id", unique=True)
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Could not connect to MongoDB", error=str(e)) from e
        logger.info(f"✅ Connected to MongoDB database '{self._db.name}', collection '{self._collection.name}'")

    async def close(self) -> None:
        self._client.close()

    async def insert(self, document: Dict[str, Any]) -> None:
        try:
            # insert_one adds _id to the dict it is given
            await self._collection.insert_one(dict(document))
        except pymongo_errors.DuplicateKeyError as e:
            raise DuplicateRegistrationError(error=str(e)) from e
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Error saving registration", error=str(e)) from e

    async def find_all(self) -> List[Dict[str, Any]]:
        try:
            cursor = self._collection.find({}, {"_id": 0})
            return await cursor.to_list(length=None)
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Error fetching registrations", error=str(e)) from e

    async def find_one(self, registration_id: str) -> Optional[Dict[str, Any]]:
        try:
            return await self._collection.find_one({"id": registration_id}, {"_id": 0})
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Error fetching registration", error=str(e)) from e

    async def update_fields(self, registration_id: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self._collection.find_one_and_update(
                {"id": registration_id},
                {"$set": fields},
                projection={"_id": 0},
                return_document=ReturnDocument.AFTER,
            )
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Error updating registration", error=str(e)) from e

    async def next_sequence(self, name: str) -> int:
        try:
            counter = await self._counters.find_one_and_update(
                {"_id": name},
                {"$inc": {"value": 1}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except pymongo_errors.PyMongoError as e:
            raise StorageError("Error allocating registration id", error=str(e)) from e
        return int(counter["value"])


async def open_store(settings: StorageSettings) -> RegistrationStore:
    """
    Build and connect the store named in settings

    With backend "mongodb" a connection failure either propagates (process
    exits) or, when on_connect_failure is "memory", falls back to the
    ephemeral store with a warning.
    """
    if settings.backend == "memory":
        logger.warning("⚠️  Using in-memory storage: registrations are NOT persisted")
        return InMemoryRegistrationStore()

    store = MongoRegistrationStore(
        settings.mongo_uri,
        database=settings.database,
        collection=settings.collection,
        server_selection_timeout_ms=settings.server_selection_timeout_ms,
    )
    try:
        await store.connect()
    except StorageError as e:
        logger.error(f"❌ MongoDB connection failed: {e.error}")
        await store.close()
        if settings.on_connect_failure != "memory":
            raise
        logger.warning("⚠️  Falling back to in-memory storage: registrations are NOT persisted")
        return InMemoryRegistrationStore()
    return store
