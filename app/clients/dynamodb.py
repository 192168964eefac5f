"""
DynamoDB implementation of the document store contract.

Items live in a single table keyed by ``pk`` (collection) and ``sk``
(document id). Conditional writes give the atomic insert and
compare-and-swap semantics the page records rely on.
"""

from __future__ import annotations

from decimal import Decimal
from functools import reduce
from typing import Any, Dict, Iterable, Mapping, Optional
from uuid import uuid4

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import StorageSettings

from .document_store import (
    Document,
    DuplicateDocumentError,
    FieldFilter,
    StorageUnavailableError,
)

_CONDITION_FAILED = "ConditionalCheckFailedException"
_KEY_ATTRIBUTES = ("pk", "sk")


def _to_python(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, dict):
        return {key: _to_python(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_python(item) for item in value]
    return value


def _to_dynamo(value: Any) -> Any:
    if isinstance(value, float):
        return Decimal(str(value))
    if isinstance(value, dict):
        return {key: _to_dynamo(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_to_dynamo(item) for item in value]
    return value


def _attr_condition(flt: FieldFilter):
    attr = Attr(flt.field)
    value = _to_dynamo(flt.value)
    builders = {
        "==": attr.eq,
        "!=": attr.ne,
        "<": attr.lt,
        "<=": attr.lte,
        ">": attr.gt,
        ">=": attr.gte,
    }
    return builders[flt.op](value)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


class DynamoDBDocumentStore:
    """Document store operations against a DynamoDB table."""

    def __init__(self, settings: StorageSettings, *, table: Any = None) -> None:
        self._settings = settings
        if table is None:
            if not settings.dynamodb_table_name:
                raise ValueError("DYNAMODB_TABLE_NAME must be set for the dynamodb backend.")
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    @staticmethod
    def _strip_keys(item: Mapping[str, Any]) -> Document:
        document = {k: v for k, v in item.items() if k not in _KEY_ATTRIBUTES}
        return _to_python(document)

    def insert(
        self,
        collection: str,
        document: Mapping[str, Any],
        *,
        document_id: Optional[str] = None,
    ) -> str:
        doc_id = document_id or uuid4().hex
        item: Dict[str, Any] = _to_dynamo(dict(document))
        item.update({"pk": collection, "sk": doc_id, "id": doc_id})
        try:
            self._table.put_item(
                Item=item,
                ConditionExpression=Attr("pk").not_exists(),
            )
        except ClientError as exc:
            if _error_code(exc) == _CONDITION_FAILED:
                raise DuplicateDocumentError(f"{collection}/{doc_id} already exists") from exc
            raise StorageUnavailableError(f"DynamoDB put_item failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB put_item failed: {exc}") from exc
        return doc_id

    def get(self, collection: str, document_id: str) -> Optional[Document]:
        try:
            response = self._table.get_item(Key={"pk": collection, "sk": document_id})
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError(f"DynamoDB get_item failed: {exc}") from exc
        item = response.get("Item")
        if item is None:
            return None
        return self._strip_keys(item)

    def query(self, collection: str, filters: Iterable[FieldFilter]) -> list[Document]:
        params: Dict[str, Any] = {"KeyConditionExpression": Key("pk").eq(collection)}
        conditions = [_attr_condition(flt) for flt in filters]
        if conditions:
            params["FilterExpression"] = reduce(lambda left, right: left & right, conditions)

        documents: list[Document] = []
        try:
            while True:
                response = self._table.query(**params)
                documents.extend(self._strip_keys(item) for item in response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key:
                    break
                params["ExclusiveStartKey"] = last_key
        except (BotoCoreError, ClientError) as exc:
            raise StorageUnavailableError(f"DynamoDB query failed: {exc}") from exc
        return documents

    def update(
        self,
        collection: str,
        document_id: str,
        patch: Mapping[str, Any],
        *,
        expected: Optional[Mapping[str, Any]] = None,
    ) -> bool:
        if not patch:
            return self.get(collection, document_id) is not None

        names: Dict[str, str] = {}
        values: Dict[str, Any] = {}
        assignments = []
        for index, (field, value) in enumerate(patch.items()):
            names[f"#f{index}"] = field
            values[f":v{index}"] = _to_dynamo(value)
            assignments.append(f"#f{index} = :v{index}")

        condition = Attr("pk").exists()
        for field, value in (expected or {}).items():
            condition = condition & Attr(field).eq(_to_dynamo(value))

        try:
            self._table.update_item(
                Key={"pk": collection, "sk": document_id},
                UpdateExpression="SET " + ", ".join(assignments),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ConditionExpression=condition,
            )
        except ClientError as exc:
            if _error_code(exc) == _CONDITION_FAILED:
                return False
            raise StorageUnavailableError(f"DynamoDB update_item failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB update_item failed: {exc}") from exc
        return True

    def delete(
        self,
        collection: str,
        document_id: str,
        *,
        conditions: Iterable[FieldFilter] = (),
    ) -> bool:
        params: Dict[str, Any] = {
            "Key": {"pk": collection, "sk": document_id},
            "ReturnValues": "ALL_OLD",
        }
        built = [_attr_condition(flt) for flt in conditions]
        if built:
            params["ConditionExpression"] = reduce(lambda left, right: left & right, built)
        try:
            response = self._table.delete_item(**params)
        except ClientError as exc:
            if _error_code(exc) == _CONDITION_FAILED:
                return False
            raise StorageUnavailableError(f"DynamoDB delete_item failed: {exc}") from exc
        except BotoCoreError as exc:
            raise StorageUnavailableError(f"DynamoDB delete_item failed: {exc}") from exc
        return bool(response.get("Attributes"))


__all__ = ["DynamoDBDocumentStore"]
