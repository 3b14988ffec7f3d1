"""
Saved-question listing and execution.

Parameters are checked against the question's declared inputs before the
execution request goes out, so a rejected call never reaches the server.
"""

import datetime as dt
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from mbr.api.client import MetabaseClient
from mbr.auth.auth_state import AuthState
from mbr.errors import ErrorKind, MbrError, RemoteError
from mbr.logging import get_logger
from mbr.models import Column, ParameterSpec, QuestionFilter, TabularResult

QUESTION_COLUMNS = (
    Column("id", "ID", "type/Integer"),
    Column("name", "Name", "type/Text"),
    Column("collection", "Collection", "type/Text"),
    Column("last_run", "Last Run", "type/DateTime"),
)

_DATETIME_TYPES = ("type/DateTime", "type/DateTimeWithTZ", "type/DateTimeWithLocalTZ",
                   "type/Instant")
_DATE_TYPES = ("type/Date",)
_INTEGER_TYPES = ("type/Integer", "type/BigInteger")
_FLOAT_TYPES = ("type/Float", "type/Decimal", "type/Number")


def parse_param_args(items: Optional[Iterable[str]]) -> Dict[str, str]:
    """
    Turn repeated ``--param name=value`` options into a mapping.

    Raises:
        MbrError: InvalidParameterFormat for items without '=' or a name
    """
    params: Dict[str, str] = {}
    for item in items or []:
        name, sep, value = item.partition("=")
        name = name.strip()
        if not sep or not name:
            raise MbrError(
                ErrorKind.INVALID_PARAMETER_FORMAT,
                f"Invalid parameter '{item}'",
                field=item,
            )
        params[name] = value
    return params


def _parse_iso(value: str, date_only: bool) -> Any:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        if date_only:
            return dt.date.fromisoformat(text[:10])
        return dt.datetime.fromisoformat(text)
    except ValueError:
        return value


def coerce_cell(value: Any, base_type: str) -> Any:
    """Normalize one raw JSON cell according to its column's base type"""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str):
        if base_type in _DATETIME_TYPES:
            return _parse_iso(value, date_only=False)
        if base_type in _DATE_TYPES:
            return _parse_iso(value, date_only=True)
        return value
    if isinstance(value, (int, float)):
        if base_type in _INTEGER_TYPES and isinstance(value, float) and value.is_integer():
            return int(value)
        if base_type in _FLOAT_TYPES and isinstance(value, int):
            return float(value)
        return value
    return value


def _collection_name(card: Mapping[str, Any]) -> str:
    collection = card.get("collection")
    if isinstance(collection, dict) and collection.get("name"):
        return str(collection["name"])
    if card.get("collection_id") is not None:
        return f"ID: {card['collection_id']}"
    return "Root"


def _matches_collection(card: Mapping[str, Any], collection: Optional[str]) -> bool:
    if not collection:
        return True
    wanted = collection.strip().lower()
    coll = card.get("collection") if isinstance(card.get("collection"), dict) else {}
    collection_id = card.get("collection_id", coll.get("id"))
    if wanted == "root":
        return collection_id is None
    return wanted in (str(collection_id).lower(), str(coll.get("name", "")).lower())


def question_row(card: Mapping[str, Any]) -> Tuple[Any, ...]:
    last_run = card.get("last_query_start") or card.get("updated_at")
    return (
        card.get("id"),
        card.get("name"),
        _collection_name(card),
        coerce_cell(last_run, "type/DateTime"),
    )


def _search_items(payload: Any) -> Tuple[List[Dict[str, Any]], Optional[int]]:
    """Cards from a /api/search payload (dict with data/total, or a bare list)"""
    if isinstance(payload, dict):
        items = payload.get("data") or []
        total = payload.get("total")
    else:
        items = payload or []
        total = None
    cards = [item for item in items if item.get("model", "card") == "card"]
    return cards, total if isinstance(total, int) else None


class QuestionPageSource:
    """Lazy page source over /api/search for the interactive question list.

    Offsets are search offsets, so no client-side collection filter applies here.
    """

    columns = QUESTION_COLUMNS

    def __init__(self, service: "QueryService", question_filter: QuestionFilter):
        self.service = service
        self.filter = question_filter

    def fetch_page(self, offset: int, size: int) -> Tuple[List[Tuple[Any, ...]], bool]:
        limit = self.filter.limit
        if limit is not None:
            size = max(0, min(size, limit - offset))
            if size == 0:
                return [], False
        try:
            payload = self.service.client.search_cards(
                self.filter.search, limit=size, offset=offset
            )
        except RemoteError as e:
            raise self.service.classify(e) from e
        cards, total = _search_items(payload)
        rows = [question_row(card) for card in cards]
        if total is not None:
            has_more = offset + len(cards) < total
        else:
            has_more = len(cards) == size
        if limit is not None and offset + len(cards) >= limit:
            has_more = False
        return rows, has_more


class QueryService:
    def __init__(self, client: MetabaseClient, auth: Optional[AuthState] = None):
        self.client = client
        self.auth = auth
        self.logger = get_logger("mbr.services.query")

    def classify(self, exc: RemoteError, card_id: Optional[int] = None) -> MbrError:
        if exc.is_unauthorized:
            if self.auth is not None:
                self.auth.handle_unauthorized()
            return MbrError(ErrorKind.AUTH_REQUIRED, "Authentication required", status=401)
        if exc.status == 404 and card_id is not None:
            return MbrError(
                ErrorKind.INVALID_REQUEST, f"Question {card_id} not found", status=404
            )
        if exc.is_client_error and not exc.is_timeout:
            return MbrError(ErrorKind.INVALID_REQUEST, exc.message, status=exc.status)
        return MbrError(ErrorKind.API_UNAVAILABLE, exc.message, status=exc.status)

    def list_questions(self, question_filter: Optional[QuestionFilter] = None) -> TabularResult:
        question_filter = question_filter or QuestionFilter()
        try:
            if question_filter.search:
                cards, _ = _search_items(self.client.search_cards(question_filter.search))
            else:
                cards = self.client.list_cards(question_filter.collection)
        except RemoteError as e:
            raise self.classify(e) from e

        cards = [card for card in cards if _matches_collection(card, question_filter.collection)]
        if question_filter.limit is not None:
            cards = cards[: question_filter.limit]
        self.logger.debug(f"Listed {len(cards)} questions")
        return TabularResult(QUESTION_COLUMNS, tuple(question_row(card) for card in cards))

    def question_pages(self, question_filter: Optional[QuestionFilter] = None) -> QuestionPageSource:
        return QuestionPageSource(self, question_filter or QuestionFilter())

    def get_parameter_spec(self, card_id: int) -> Dict[str, ParameterSpec]:
        """Declared inputs of a question, keyed by slug. Never cached."""
        try:
            card = self.client.get_card(card_id) or {}
        except RemoteError as e:
            raise self.classify(e, card_id) from e

        specs: Dict[str, ParameterSpec] = {}
        for param in card.get("parameters") or []:
            slug = param.get("slug") or param.get("name")
            if not slug:
                continue
            specs[slug] = ParameterSpec(
                slug=slug,
                name=param.get("name") or slug,
                type=param.get("type") or "category",
                required=bool(param.get("required", False)),
                default=param.get("default"),
                target=param.get("target"),
                id=param.get("id"),
            )
        if specs:
            return specs

        native = (card.get("dataset_query") or {}).get("native") or {}
        for name, tag in (native.get("template-tags") or {}).items():
            specs[name] = ParameterSpec(
                slug=name,
                name=tag.get("display-name") or name,
                type=tag.get("type") or "text",
                required=bool(tag.get("required", False)),
                default=tag.get("default"),
                target=["variable", ["template-tag", name]],
                id=tag.get("id"),
            )
        return specs

    @staticmethod
    def validate_parameters(specs: Mapping[str, ParameterSpec], params: Mapping[str, str]) -> None:
        unknown = [key for key in params if key not in specs]
        if unknown:
            raise MbrError(
                ErrorKind.UNKNOWN_PARAMETER,
                f"Unknown parameter '{unknown[0]}'. Known: {', '.join(specs) or 'none'}",
                field=unknown[0],
            )
        for slug, spec in specs.items():
            if spec.must_be_supplied and slug not in params:
                raise MbrError(
                    ErrorKind.MISSING_PARAMETER,
                    f"Missing required parameter '{slug}'",
                    field=slug,
                )

    @staticmethod
    def _parameter_payload(
        specs: Mapping[str, ParameterSpec], params: Mapping[str, str]
    ) -> List[Dict[str, Any]]:
        payload = []
        for slug, value in params.items():
            spec = specs[slug]
            item: Dict[str, Any] = {"type": spec.type, "value": value}
            if spec.target is not None:
                item["target"] = spec.target
            if spec.id:
                item["id"] = spec.id
            payload.append(item)
        return payload

    def execute_question(
        self, card_id: int, params: Optional[Mapping[str, str]] = None
    ) -> TabularResult:
        params = dict(params or {})
        specs = self.get_parameter_spec(card_id)
        self.validate_parameters(specs, params)

        self.logger.info(f"Executing question {card_id} with {len(params)} parameter(s)")
        try:
            body = self.client.execute_card(card_id, self._parameter_payload(specs, params)) or {}
        except RemoteError as e:
            raise self.classify(e, card_id) from e

        if body.get("status") == "failed" or body.get("error"):
            raise MbrError(
                ErrorKind.INVALID_REQUEST,
                f"Question {card_id} failed: {body.get('error') or 'unknown error'}",
            )
        return self.normalize(body)

    @staticmethod
    def normalize(body: Mapping[str, Any]) -> TabularResult:
        """Build a TabularResult from a /api/card/:id/query response"""
        data = body.get("data") or {}
        columns = tuple(
            Column(
                name=col.get("name", ""),
                display_name=col.get("display_name") or col.get("name", ""),
                base_type=col.get("base_type") or "type/Text",
            )
            for col in data.get("cols") or []
        )
        rows = tuple(
            tuple(coerce_cell(value, columns[i].base_type if i < len(columns) else "")
                  for i, value in enumerate(row))
            for row in data.get("rows") or []
        )
        return TabularResult(columns, rows)
