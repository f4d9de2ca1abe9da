import logging
import os
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

import firebase_admin
from firebase_admin import credentials, firestore
from pydantic import BaseModel as PydanticBaseModel

from wifmart.core.config import settings

logger = logging.getLogger("wifmart.db")

# (field, operator, value) triples passed straight to Firestore's where()
Filter = Tuple[str, str, Any]


class FirebaseManager:
    """
    Firebase Firestore Manager for handling database operations
    """
    _instance = None
    _db = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(FirebaseManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        if self._db is None:
            self.initialize_firebase()

    def initialize_firebase(self):
        """Initialize Firebase Admin SDK"""
        try:
            app = firebase_admin.get_app()
            self._db = firestore.client(app)
            logger.info("Using existing Firebase app")
            return
        except ValueError:
            pass  # App doesn't exist, so we need to initialize it

        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        service_account_path = settings.FIREBASE_CREDENTIALS_PATH

        try:
            if service_account_path and os.path.exists(service_account_path):
                cred = credentials.Certificate(service_account_path)
                logger.info(f"Initializing Firebase with service account key from {service_account_path}")
            else:
                cred = credentials.ApplicationDefault()
                logger.info("Initializing Firebase with application default credentials")
            firebase_admin.initialize_app(cred, options)
            self._db = firestore.client()
            logger.info("Firebase Firestore client initialized")
        except Exception as e:
            logger.error(
                f"Could not initialize Firebase: {e}. Set FIREBASE_CREDENTIALS_PATH or "
                "GOOGLE_APPLICATION_CREDENTIALS to a service account key."
            )

    def get_db(self):
        """Get Firestore database client"""
        if self._db is None:
            logger.warning("Firestore DB client accessed before initialization or initialization failed.")
        return self._db


class FirestoreBaseModel:
    """
    Firestore operations used by the services.

    Read and write failures are logged and reported through the return value
    (None / False / []), never raised, so callers decide how to surface them.
    """

    def __init__(self):
        self.firebase_manager = FirebaseManager()
        self.db = self.firebase_manager.get_db()

    def _prepare_data_for_firestore(self, data_model: Any) -> Dict[str, Any]:
        """Converts Pydantic model or dict to Firestore-compatible dict."""
        if isinstance(data_model, PydanticBaseModel):
            data = data_model.model_dump()
        elif isinstance(data_model, dict):
            data = data_model.copy()
        else:
            raise ValueError("Data must be a Pydantic model or a dictionary.")
        return {key: _to_firestore_value(value) for key, value in data.items()}

    def save(self, collection_name: str, data_model: Any, document_id: Optional[str] = None) -> Optional[str]:
        """Save Pydantic model or dictionary to Firestore"""
        if not self.db:
            logger.error("Database not initialized")
            return None

        data = self._prepare_data_for_firestore(data_model)

        now = datetime.now(timezone.utc)
        data["updated_at"] = now
        if not document_id or not self.get(collection_name, document_id):
            data.setdefault("created_at", now)

        try:
            if document_id:
                doc_ref = self.db.collection(collection_name).document(document_id)
                doc_ref.set(data, merge=True)
                return document_id
            # add() returns a tuple (timestamp, DocumentReference)
            doc_ref = self.db.collection(collection_name).add(data)
            return doc_ref[1].id
        except Exception as e:
            logger.error(f"Error saving to Firestore collection '{collection_name}': {e}")
            return None

    def get(self, collection_name: str, document_id: str, pydantic_model: Optional[type[PydanticBaseModel]] = None) -> Optional[Any]:
        """Get document from Firestore by ID, optionally parsing into a Pydantic model."""
        if not self.db:
            logger.error("Database not initialized")
            return None

        try:
            doc = self.db.collection(collection_name).document(document_id).get()
            if not doc.exists:
                return None
            data = doc.to_dict()
            if pydantic_model:
                return pydantic_model(**data)
            return data
        except Exception as e:
            logger.error(f"Error getting document '{document_id}' from Firestore collection '{collection_name}': {e}")
            return None

    def query(self, collection_name: str, field: str, operator: str, value: Any, pydantic_model: Optional[type[PydanticBaseModel]] = None) -> List[Any]:
        """Query documents by field, optionally parsing into Pydantic models."""
        return self.query_ordered(collection_name, [(field, operator, value)], pydantic_model=pydantic_model)

    def query_ordered(
        self,
        collection_name: str,
        filters: Sequence[Filter],
        order_by: Optional[str] = None,
        descending: bool = True,
        limit: Optional[int] = None,
        offset: int = 0,
        pydantic_model: Optional[type[PydanticBaseModel]] = None,
    ) -> List[Any]:
        """
        Query documents matching all filters, optionally ordered and sliced.

        Equality filters combined with order_by need a composite index in
        Firestore (e.g. provider_id + created_at desc for hire_requests).
        """
        if not self.db:
            logger.error("Database not initialized")
            return []

        try:
            query_ref = self.db.collection(collection_name)
            for field, operator, value in filters:
                query_ref = query_ref.where(field, operator, _to_firestore_value(value))
            if order_by:
                direction = firestore.Query.DESCENDING if descending else firestore.Query.ASCENDING
                query_ref = query_ref.order_by(order_by, direction=direction)
            if offset:
                query_ref = query_ref.offset(offset)
            if limit:
                query_ref = query_ref.limit(limit)

            results = []
            for doc in query_ref.stream():
                data = {"id": doc.id, **doc.to_dict()}
                results.append(pydantic_model(**data) if pydantic_model else data)
            return results
        except Exception as e:
            logger.error(f"Error querying Firestore collection '{collection_name}': {e}")
            return []

    def count(self, collection_name: str, filters: Sequence[Filter]) -> int:
        """Count documents matching all filters using an aggregation query."""
        if not self.db:
            logger.error("Database not initialized")
            return 0

        try:
            query_ref = self.db.collection(collection_name)
            for field, operator, value in filters:
                query_ref = query_ref.where(field, operator, _to_firestore_value(value))
            results = query_ref.count(alias="total").get()
            return int(results[0][0].value)
        except Exception as e:
            logger.error(f"Error counting Firestore collection '{collection_name}': {e}")
            return 0

    def update(self, collection_name: str, document_id: str, updates: Dict[str, Any]) -> bool:
        """Update specific fields in a document."""
        if not self.db:
            logger.error("Database not initialized")
            return False

        if not isinstance(updates, dict):
            logger.error("'updates' must be a dictionary.")
            return False

        try:
            updates_copy = {key: _to_firestore_value(value) for key, value in updates.items()}
            updates_copy["updated_at"] = datetime.now(timezone.utc)
            self.db.collection(collection_name).document(document_id).update(updates_copy)
            return True
        except Exception as e:
            logger.error(f"Error updating document '{document_id}' in Firestore collection '{collection_name}': {e}")
            return False

    def compare_and_set(
        self,
        collection_name: str,
        document_id: str,
        field: str,
        expected: Any,
        updates: Dict[str, Any],
    ) -> Optional[Tuple[bool, Optional[Any]]]:
        """
        Apply updates only if document[field] still equals expected.

        Runs in a Firestore transaction, so of two concurrent callers expecting
        the same value only one applies. Returns (applied, current_value);
        current_value is None when the document does not exist. Returns None
        if the transaction itself failed.
        """
        if not self.db:
            logger.error("Database not initialized")
            return None

        doc_ref = self.db.collection(collection_name).document(document_id)
        expected_value = _to_firestore_value(expected)
        updates_copy = {key: _to_firestore_value(value) for key, value in updates.items()}
        updates_copy["updated_at"] = datetime.now(timezone.utc)

        @firestore.transactional
        def _apply(transaction):
            snapshot = doc_ref.get(transaction=transaction)
            if not snapshot.exists:
                return False, None
            current = snapshot.to_dict().get(field)
            if current != expected_value:
                return False, current
            transaction.update(doc_ref, updates_copy)
            return True, current

        try:
            return _apply(self.db.transaction())
        except Exception as e:
            logger.error(f"Error in conditional update of '{document_id}' in Firestore collection '{collection_name}': {e}")
            return None


def _to_firestore_value(value: Any) -> Any:
    """Firestore stores datetimes natively but not bare dates or enums."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, list):
        return [_to_firestore_value(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_firestore_value(item) for key, item in value.items()}
    return value


def get_firestore_ops_instance() -> FirestoreBaseModel:
    return FirestoreBaseModel()
