"""
Field mappings and conversion functions for raw table records.

Defines:
- SCHEDULE_FIELD_MAP / RESOURCE_FIELD_MAP / ALLOCATION_FIELD_MAP: external
  (Japanese) field names -> internal attribute, tagged with a field kind.
- STATUS_LABELS: external status labels -> ScheduleStatus.
- schedule_item_from_record(), resource_from_record(), allocation_from_record():
  one conversion function per entity.

Schedule items are never rejected: unusable values are dropped and reported
as DataQualityWarnings on the item. Resources and allocations have no such
slack, so a record that cannot be converted raises RepositoryError.
"""

import logging
import math
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from pydantic import ValidationError

from models import (
    Allocation,
    DataQualityWarning,
    Resource,
    ResourceKind,
    ScheduleItem,
    ScheduleStatus,
    WorkBreakdownTier,
)
from schedule_engine.errors import RepositoryError

logger = logging.getLogger(__name__)


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    MULTI = "multi"
    CHECKBOX = "checkbox"
    STATUS = "status"
    TIER = "tier"
    KIND = "kind"


RECORD_ID = "record_id"

# ── Schedule items (工程) ─────────────────────────────────────────────────

SCHEDULE_FIELD_MAP: Dict[str, Tuple[str, FieldKind]] = {
    "親工程ID": ("parent_id", FieldKind.TEXT),
    "contractId": ("contract_id", FieldKind.TEXT),
    "工程名": ("name", FieldKind.TEXT),
    "工程区分": ("tier", FieldKind.TIER),
    "予定開始日": ("planned_start", FieldKind.DATE),
    "予定終了日": ("planned_end", FieldKind.DATE),
    "実績開始日": ("actual_start", FieldKind.DATE),
    "実績終了日": ("actual_end", FieldKind.DATE),
    "進捗率": ("progress", FieldKind.NUMBER),
    "ステータス": ("status", FieldKind.STATUS),
    "担当者ID": ("assigned_person_ids", FieldKind.MULTI),
    "協力会社ID": ("assigned_subcontractor_ids", FieldKind.MULTI),
    "使用機材ID": ("assigned_equipment_ids", FieldKind.MULTI),
    "先行工程ID": ("predecessor_ids", FieldKind.MULTI),
    "後続工程ID": ("successor_ids", FieldKind.MULTI),
    "備考": ("notes", FieldKind.TEXT),
    "マイルストーン": ("milestone", FieldKind.CHECKBOX),
    "クリティカルパス": ("critical_path", FieldKind.CHECKBOX),
}

# ── Resources (資機材 / 資格者 / 協力会社) ─────────────────────────────────

RESOURCE_FIELD_MAP: Dict[str, Tuple[str, FieldKind]] = {
    "名称": ("name", FieldKind.TEXT),
    "種別": ("kind", FieldKind.KIND),
    "保有数量": ("capacity", FieldKind.NUMBER),
    "有効": ("active", FieldKind.CHECKBOX),
    "評価ランク": ("rating", FieldKind.TEXT),
}

# ── Allocations (機材配置) ────────────────────────────────────────────────

ALLOCATION_FIELD_MAP: Dict[str, Tuple[str, FieldKind]] = {
    "工程ID": ("schedule_item_id", FieldKind.TEXT),
    "資機材ID": ("resource_id", FieldKind.TEXT),
    "使用数量": ("quantity", FieldKind.NUMBER),
    "開始日": ("start", FieldKind.DATE),
    "終了日": ("end", FieldKind.DATE),
}

STATUS_LABELS: Dict[str, ScheduleStatus] = {
    "未着手": ScheduleStatus.NOT_STARTED,
    "進行中": ScheduleStatus.IN_PROGRESS,
    "遅延": ScheduleStatus.DELAYED,
    "完了": ScheduleStatus.COMPLETED,
    "保留": ScheduleStatus.ON_HOLD,
}

TIER_LABELS: Dict[str, WorkBreakdownTier] = {
    "大工程": WorkBreakdownTier.LARGE,
    "中工程": WorkBreakdownTier.MEDIUM,
    "小工程": WorkBreakdownTier.SMALL,
}

KIND_LABELS: Dict[str, ResourceKind] = {
    "人員": ResourceKind.PERSON,
    "機材": ResourceKind.EQUIPMENT,
    "協力会社": ResourceKind.SUBCONTRACTOR,
}


# ── Value parsers ─────────────────────────────────────────────────────────


class _Unparseable(Exception):
    pass


def parse_date(value: Any) -> Optional[date]:
    """
    Accepts ISO strings (date or datetime) and epoch milliseconds.
    Returns None for empty values; raises _Unparseable for anything else.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, bool):
        raise _Unparseable(repr(value))
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc).date()
        except (OverflowError, OSError, ValueError) as exc:
            raise _Unparseable(repr(value)) from exc
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError as exc:
            raise _Unparseable(repr(value)) from exc
    raise _Unparseable(repr(value))


def parse_number(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise _Unparseable(repr(value))
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise _Unparseable(repr(value)) from exc
    if math.isnan(number) or math.isinf(number):
        raise _Unparseable(repr(value))
    return number


def parse_multi(value: Any) -> Set[str]:
    if not value:
        return set()
    if isinstance(value, str):
        return {value}
    if isinstance(value, (list, tuple, set)):
        return {str(v) for v in value if v not in (None, "")}
    raise _Unparseable(repr(value))


def _labelled(value: Any, labels: Dict[str, Enum], enum_cls) -> Any:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise _Unparseable(repr(value))
    if value in labels:
        return labels[value]
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise _Unparseable(repr(value)) from exc


def _convert(value: Any, kind: FieldKind) -> Any:
    if kind == FieldKind.TEXT:
        return None if value is None else str(value)
    if kind == FieldKind.NUMBER:
        return parse_number(value)
    if kind == FieldKind.DATE:
        return parse_date(value)
    if kind == FieldKind.MULTI:
        return parse_multi(value)
    if kind == FieldKind.CHECKBOX:
        return bool(value)
    if kind == FieldKind.STATUS:
        return _labelled(value, STATUS_LABELS, ScheduleStatus)
    if kind == FieldKind.TIER:
        return _labelled(value, TIER_LABELS, WorkBreakdownTier)
    return _labelled(value, KIND_LABELS, ResourceKind)


def map_fields(
    fields: Dict[str, Any],
    field_map: Dict[str, Tuple[str, FieldKind]]
) -> Tuple[Dict[str, Any], Dict[str, str]]:
    """
    Convert every mapped field that is present.
    Returns (converted values, {attribute: problem}) for values that failed to parse.
    """
    values: Dict[str, Any] = {}
    problems: Dict[str, str] = {}
    for external_name, (attribute, kind) in field_map.items():
        if external_name not in fields:
            continue
        try:
            converted = _convert(fields[external_name], kind)
        except _Unparseable as exc:
            problems[attribute] = f"Unreadable {kind.value} value {exc} in '{external_name}'"
            continue
        if converted is not None:
            values[attribute] = converted
    return values, problems


# ── Entity conversions ────────────────────────────────────────────────────


def schedule_item_from_record(record: Dict[str, Any]) -> ScheduleItem:
    """
    Build a ScheduleItem from a raw record ({"record_id": ..., "fields": {...}}).
    Never raises for bad field values; they become warnings on the item.
    """
    record_id = str(record.get(RECORD_ID) or "")
    if not record_id:
        raise RepositoryError("Schedule record without a record_id")

    values, problems = map_fields(record.get("fields") or {}, SCHEDULE_FIELD_MAP)
    warnings: List[DataQualityWarning] = [
        DataQualityWarning(item_id=record_id, field=attribute, message=message)
        for attribute, message in problems.items()
    ]

    progress = int(round(values.pop("progress", 0)))
    clamped = max(0, min(100, progress))
    if clamped != progress:
        warnings.append(DataQualityWarning(
            item_id=record_id,
            field="progress",
            message=f"Progress {progress} outside 0-100; clamped to {clamped}"
        ))
    values["progress"] = clamped

    # A recorded hold lasts until progress moves away from its current value
    if values.get("status") == ScheduleStatus.ON_HOLD:
        values["hold_progress"] = clamped

    for warning in warnings:
        logger.warning(f"[{record_id}] {warning.message}")

    return ScheduleItem(id=record_id, data_warnings=warnings, **values)


def resource_from_record(record: Dict[str, Any], default_kind: Optional[ResourceKind] = None) -> Resource:
    record_id = str(record.get(RECORD_ID) or "")
    values, problems = map_fields(record.get("fields") or {}, RESOURCE_FIELD_MAP)
    if problems:
        raise RepositoryError(f"Resource {record_id}: " + "; ".join(problems.values()))

    if "kind" not in values and default_kind is not None:
        values["kind"] = default_kind
    if "capacity" in values:
        values["capacity"] = int(values["capacity"])
    elif values.get("kind") == ResourceKind.PERSON:
        values["capacity"] = 1
    values.setdefault("active", True)

    try:
        return Resource(id=record_id, **values)
    except ValidationError as e:
        raise RepositoryError(f"Resource {record_id} is invalid: {e}") from e


def allocation_from_record(record: Dict[str, Any]) -> Allocation:
    record_id = record.get(RECORD_ID)
    record_id = None if record_id is None else str(record_id)
    values, problems = map_fields(record.get("fields") or {}, ALLOCATION_FIELD_MAP)
    if problems:
        raise RepositoryError(f"Allocation {record_id}: " + "; ".join(problems.values()))

    if "quantity" in values:
        values["quantity"] = int(values["quantity"])
    period = {"start": values.pop("start", None), "end": values.pop("end", None)}

    try:
        return Allocation(id=record_id, period=period, **values)
    except ValidationError as e:
        raise RepositoryError(f"Allocation {record_id} is invalid: {e}") from e
