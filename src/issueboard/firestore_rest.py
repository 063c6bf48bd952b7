from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import requests

from .errors import StoreError
from .logging import get_logger
from .models import CurrentUser, Issue, IssueDraft, Priority, Status, parse_timestamp
from .store import generate_auto_id

DEFAULT_API_URL = "https://firestore.googleapis.com/v1"
USER_AGENT = "issueboard-rest/0.1.0"
HTTP_ERROR_STATUS = 400
CREATED_TIME_FIELD = "createdTime"

_STATUS_CATEGORIES = {
    "PERMISSION_DENIED": "store.permission",
    "UNAUTHENTICATED": "store.permission",
    "NOT_FOUND": "store.not_found",
    "FAILED_PRECONDITION": "store.index_required",
    "UNAVAILABLE": "network",
    "DEADLINE_EXCEEDED": "network",
}


def encode_value(value: Any) -> dict[str, Any]:
    """Encode a Python value as a Firestore typed value."""
    if value is None:
        return {"nullValue": None}
    if isinstance(value, bool):
        return {"booleanValue": value}
    if isinstance(value, int):
        return {"integerValue": str(value)}
    if isinstance(value, float):
        return {"doubleValue": value}
    return {"stringValue": str(value)}


def decode_value(value: dict[str, Any]) -> Any:
    """Decode a Firestore typed value into a plain Python value."""
    if "stringValue" in value:
        return value["stringValue"]
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(v) for v in value["arrayValue"].get("values", [])]
    return None


def encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    return {key: encode_value(val) for key, val in data.items()}


def decode_fields(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: decode_value(val) for key, val in fields.items() if isinstance(val, dict)}


def document_to_issue(document: dict[str, Any]) -> Issue:
    """Decode one REST document; unreadable field values raise StoreError."""
    try:
        data = decode_fields(document.get("fields", {}))
        data["id"] = str(document.get("name", "")).rsplit("/", 1)[-1]
        if data.get(CREATED_TIME_FIELD) is None and document.get("createTime"):
            data[CREATED_TIME_FIELD] = document["createTime"]
        return Issue.from_dict(data)
    except (KeyError, ValueError) as exc:
        raise StoreError(f"Malformed issue document {document.get('name', '?')}: {exc}") from exc


def _equality_filter(field_path: str, value: str) -> dict[str, Any]:
    return {
        "fieldFilter": {
            "field": {"fieldPath": field_path},
            "op": "EQUAL",
            "value": {"stringValue": value},
        }
    }


def build_list_query(
    collection: str, status: Status | None = None, priority: Priority | None = None
) -> dict[str, Any]:
    """Structured query for the issue listing, newest first.

    Combining both filters needs a composite index on the hosted side.
    """
    query: dict[str, Any] = {
        "from": [{"collectionId": collection}],
        "orderBy": [{"field": {"fieldPath": CREATED_TIME_FIELD}, "direction": "DESCENDING"}],
    }
    filters = []
    if status is not None:
        filters.append(_equality_filter("status", status.value))
    if priority is not None:
        filters.append(_equality_filter("priority", priority.value))
    if len(filters) == 1:
        query["where"] = filters[0]
    elif filters:
        query["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
    return query


@dataclass
class FirestoreIssueStore:
    """Issue store backed by the Firestore REST API."""

    project_id: str
    collection: str = "issues"
    database: str = "(default)"
    base_url: str = DEFAULT_API_URL
    api_key: str | None = None
    timeout: float = 10.0
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)
        self._session.headers.setdefault("Content-Type", "application/json")
        self.logger = get_logger()

    @property
    def database_path(self) -> str:
        return f"projects/{self.project_id}/databases/{self.database}"

    @property
    def documents_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.database_path}/documents"

    def document_name(self, issue_id: str) -> str:
        return f"{self.database_path}/documents/{self.collection}/{issue_id}"

    # ---- REST helpers -------------------------------------------------
    def _request(
        self,
        method: str,
        url: str,
        *,
        user: CurrentUser | None,
        params: dict[str, Any] | None = None,
        json_body: Any | None = None,
    ) -> Any:
        query = dict(params or {})
        if self.api_key:
            query.setdefault("key", self.api_key)
        headers = dict(self._session.headers)
        if user is not None and user.id_token:
            headers["Authorization"] = f"Bearer {user.id_token}"
        try:
            response = self._session.request(
                method,
                url,
                params=query or None,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise StoreError(
                f"Issue store {method} request failed: {exc}", category="network"
            ) from exc
        if response.status_code >= HTTP_ERROR_STATUS:
            raise _store_error(method, response)
        if not response.text:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise StoreError(
                f"Issue store returned invalid JSON for {method}",
                status=response.status_code,
                response_text=response.text,
            ) from exc

    # ---- Issue operations --------------------------------------------
    def create_issue(
        self, draft: IssueDraft, created_by: str, *, user: CurrentUser | None = None
    ) -> str:
        issue_id = generate_auto_id()
        fields = encode_fields({**draft.to_fields(), "createdBy": created_by})
        body = {
            "writes": [
                {
                    "update": {"name": self.document_name(issue_id), "fields": fields},
                    "currentDocument": {"exists": False},
                    "updateTransforms": [
                        {"fieldPath": CREATED_TIME_FIELD, "setToServerValue": "REQUEST_TIME"}
                    ],
                }
            ]
        }
        self._request("POST", f"{self.documents_url}:commit", user=user, json_body=body)
        self.logger.debug("firestore commit ok", issue_id=issue_id)
        return issue_id

    def list_issues(
        self,
        status: Status | None = None,
        priority: Priority | None = None,
        *,
        user: CurrentUser | None = None,
    ) -> list[Issue]:
        body = {"structuredQuery": build_list_query(self.collection, status, priority)}
        data = self._request("POST", f"{self.documents_url}:runQuery", user=user, json_body=body)
        issues: list[Issue] = []
        for entry in data or []:
            # Empty result sets still yield one entry carrying only readTime
            document = entry.get("document") if isinstance(entry, dict) else None
            if isinstance(document, dict):
                issues.append(document_to_issue(document))
        return issues

    def set_status(self, issue_id: str, status: Status, *, user: CurrentUser | None = None) -> None:
        params = {"updateMask.fieldPaths": "status", "currentDocument.exists": "true"}
        body = {"fields": encode_fields({"status": status.value})}
        self._request(
            "PATCH",
            f"{self.documents_url}/{self.collection}/{issue_id}",
            user=user,
            params=params,
            json_body=body,
        )


def _store_error(method: str, response: requests.Response) -> StoreError:
    detail = ""
    category = None
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, list) and payload:
        payload = payload[0]
    if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
        error = payload["error"]
        detail = str(error.get("message") or "")
        category = _STATUS_CATEGORIES.get(str(error.get("status") or ""))
    message = f"Issue store {method} failed with {response.status_code}"
    if detail:
        message += f": {detail}"
    return StoreError(
        message,
        status=response.status_code,
        response_text=response.text,
        category=category,
    )


__all__ = [
    "FirestoreIssueStore",
    "build_list_query",
    "decode_fields",
    "decode_value",
    "document_to_issue",
    "encode_fields",
    "encode_value",
]
